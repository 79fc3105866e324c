from __future__ import annotations

import os


def main() -> None:
    os.environ.setdefault("DROPSREPORT_DISABLE_AUTO_APP", "1")
    from dropsreport.app import main as app_main

    app_main()
