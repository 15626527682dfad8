from __future__ import annotations

from sketchbook.cli import main

raise SystemExit(main())
