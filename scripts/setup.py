#!/usr/bin/env python3
"""
Setup script for fontsift.
Installs the package (with its test extra) and the Chromium build Playwright drives.
"""

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

STEPS = [
    (
        "fontsift with playwright, fonttools and the HTML/CSS parsers",
        [sys.executable, "-m", "pip", "install", "-e", f"{PROJECT_ROOT}[test]"],
    ),
    (
        "Chromium for the dynamic scanner",
        [sys.executable, "-m", "playwright", "install", "chromium"],
    ),
]


def install(what, args):
    """Run one install step; print its output only when it fails."""
    print(f"\n📦 Installing {what}...")
    print(f"   $ {' '.join(args)}")
    result = subprocess.run(args, capture_output=True, text=True)
    if result.returncode != 0:
        print(f"❌ Installing {what} failed (exit {result.returncode})")
        print(result.stderr or result.stdout)
        return False
    print(f"✅ Installed {what}")
    return True


def main():
    print("🚀 Setting up fontsift...")

    if sys.version_info < (3, 8):
        print("❌ Python 3.8+ required")
        sys.exit(1)

    for what, args in STEPS:
        if not install(what, args):
            sys.exit(1)

    print("\n✅ Setup complete! You can now run:")
    print("   fontsift https://example.com --spider-limit 10 --subset 'fonts/*.ttf' -o ./subset")
    print("   fontsift --html page.html --report report.json")


if __name__ == "__main__":
    main()
