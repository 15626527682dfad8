# どこで: `src/sketchbook/render/gl/shader.py`。
# 何を: 太線描画用（vertex + geometry + fragment）と、テクスチャ表示用のシェーダープログラムを生成する。
# なぜ: GL コアプロファイルでは glLineWidth が効かないため、線幅を geometry shader で四角形に展開するため。

from __future__ import annotations

from typing import Any

_LINE_VERTEX = """
#version 410 core
in vec3 in_vert;
uniform mat4 projection;
uniform mat4 model;
void main() {
    gl_Position = projection * model * vec4(in_vert, 1.0);
}
"""

# 線分ごとに、画面空間で line_thickness ピクセル幅の四角形を出す。
_LINE_GEOMETRY = """
#version 410 core
layout(lines) in;
layout(triangle_strip, max_vertices = 4) out;
uniform float line_thickness;
uniform vec2 viewport;
void main() {
    vec4 p0 = gl_in[0].gl_Position;
    vec4 p1 = gl_in[1].gl_Position;
    vec2 half_vp = viewport * 0.5;
    vec2 s0 = p0.xy / p0.w * half_vp;
    vec2 s1 = p1.xy / p1.w * half_vp;
    vec2 dir = s1 - s0;
    float len = length(dir);
    vec2 normal = len > 0.0 ? vec2(-dir.y, dir.x) / len : vec2(0.0, 1.0);
    vec2 offset = normal * (line_thickness * 0.5) / half_vp;

    gl_Position = vec4(p0.xy + offset * p0.w, p0.zw);
    EmitVertex();
    gl_Position = vec4(p0.xy - offset * p0.w, p0.zw);
    EmitVertex();
    gl_Position = vec4(p1.xy + offset * p1.w, p1.zw);
    EmitVertex();
    gl_Position = vec4(p1.xy - offset * p1.w, p1.zw);
    EmitVertex();
    EndPrimitive();
}
"""

_LINE_FRAGMENT = """
#version 410 core
uniform vec4 color;
out vec4 frag_color;
void main() {
    frag_color = color;
}
"""

_QUAD_VERTEX = """
#version 410 core
in vec2 in_pos;
out vec2 v_uv;
void main() {
    v_uv = in_pos * 0.5 + 0.5;
    gl_Position = vec4(in_pos, 0.0, 1.0);
}
"""

_QUAD_FRAGMENT = """
#version 410 core
in vec2 v_uv;
uniform sampler2D frame;
out vec4 frag_color;
void main() {
    frag_color = texture(frame, v_uv);
}
"""


class Shader:
    """シェーダープログラムの生成口。"""

    @staticmethod
    def create_shader(ctx: Any) -> Any:
        """太線描画用プログラムを返す（uniform: projection/model/line_thickness/viewport/color）。"""

        return ctx.program(
            vertex_shader=_LINE_VERTEX,
            geometry_shader=_LINE_GEOMETRY,
            fragment_shader=_LINE_FRAGMENT,
        )

    @staticmethod
    def create_quad_shader(ctx: Any) -> Any:
        """フルスクリーン矩形にテクスチャを貼るプログラムを返す（uniform: frame）。"""

        return ctx.program(vertex_shader=_QUAD_VERTEX, fragment_shader=_QUAD_FRAGMENT)


__all__ = ["Shader"]
