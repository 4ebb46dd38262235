from __future__ import annotations

from droll.cli import main

raise SystemExit(main())
