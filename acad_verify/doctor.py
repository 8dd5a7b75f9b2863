#!/usr/bin/env python3
"""
Environment checker for the ACAD certificate verification service.
Run it before starting the server to confirm the OCR engine, the zbar
library and the headless browser are installed.
"""

import sys
import tempfile
from pathlib import Path

from . import config

RESET = '\033[0m'
BOLD = '\033[1m'

# mark and ANSI colour per message kind
MARKS = {
    'ok': ('✓', '\033[92m'),
    'warn': ('⚠', '\033[93m'),
    'fail': ('✗', '\033[91m'),
    'step': ('→', '\033[94m'),
}


def paint(text, colour):
    if not sys.stdout.isatty():
        return text
    return f"{colour}{text}{RESET}"


def report(kind, text):
    mark, colour = MARKS[kind]
    print(paint(f"{mark} {text}", colour))


def banner(title, width=70):
    rule = '=' * width
    print()
    for line in (rule, title.center(width), rule):
        print(paint(line, BOLD + MARKS['step'][1]))
    print()


REQUIRED_PACKAGES = {
    'flask': 'flask',
    'PIL': 'pillow',
    'cv2': 'opencv-python',
    'numpy': 'numpy',
    'pytesseract': 'pytesseract',
    'qrcode': 'qrcode[pil]',
    'requests': 'requests',
    'bs4': 'beautifulsoup4',
    'playwright': 'playwright',
}


def check_python_version():
    report('step', "Checking Python version...")
    version = sys.version_info
    if version >= (3, 9):
        report('ok', f"Python {version.major}.{version.minor}.{version.micro}")
        return True
    report('fail', f"Python {version.major}.{version.minor} - Need Python 3.9+")
    return False


def check_python_packages():
    report('step', "Checking Python packages...")
    missing = []
    for import_name, package_name in REQUIRED_PACKAGES.items():
        try:
            __import__(import_name)
        except ImportError:
            missing.append(package_name)

    installed = len(REQUIRED_PACKAGES) - len(missing)
    report('ok', f"{installed}/{len(REQUIRED_PACKAGES)} packages installed")
    if missing:
        report('warn', f"Missing packages: {', '.join(missing)}")
        print(f"  Run: pip install {' '.join(missing)}")
        return False
    return True


def check_tesseract():
    report('step', "Checking Tesseract OCR...")
    try:
        from .ocr import tesseract_version
    except ImportError as e:
        report('fail', f"pytesseract unavailable: {e}")
        return False

    version = tesseract_version()
    if version:
        report('ok', f"Tesseract OCR {version} found")
        return True

    report('fail', "Tesseract OCR not found or not configured")
    print("\n  Installation instructions:")
    print("  Ubuntu/Debian: sudo apt install tesseract-ocr")
    print("  macOS: brew install tesseract")
    print("  Windows: https://github.com/UB-Mannheim/tesseract/wiki")
    print("  Or point ACAD_TESSERACT_CMD at the tesseract executable")
    return False


def check_zbar():
    report('step', f"Checking QR decoder ({config.QR_DECODER})...")
    if config.QR_DECODER == 'opencv':
        try:
            import cv2
            cv2.QRCodeDetector()
        except Exception as e:
            report('fail', f"OpenCV QR detector unavailable: {e}")
            return False
        report('ok', "OpenCV QR detector available")
        return True

    try:
        from pyzbar import pyzbar  # noqa: F401
    except Exception as e:
        report('fail', f"zbar library not found: {e}")
        print("  Ubuntu/Debian: sudo apt install libzbar0")
        print("  macOS: brew install zbar")
        print("  Or set ACAD_QR_DECODER=opencv")
        return False
    report('ok', "zbar library found")
    return True


def check_browser():
    report('step', "Checking headless browser...")
    if not config.BROWSER_ENABLED:
        report('warn', "Browser fallback disabled (ACAD_BROWSER_ENABLED=false)")
        return True

    try:
        from playwright.sync_api import sync_playwright
    except ImportError:
        report('fail', "Playwright not installed")
        return False

    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=True)
            version = browser.version
            browser.close()
    except Exception as e:
        report('fail', f"Chromium could not be launched: {e}")
        print("  Run: playwright install chromium")
        return False

    report('ok', f"Chromium {version} available")
    return True


def check_upload_folder():
    report('step', "Checking upload folder...")
    folder = Path(config.UPLOAD_FOLDER)
    try:
        folder.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=folder):
            pass
    except OSError as e:
        report('fail', f"Upload folder {folder} not writable: {e}")
        return False
    report('ok', f"Upload folder writable: {folder}")
    return True


def run_checks():
    return {
        'python_version': check_python_version(),
        'packages': check_python_packages(),
        'tesseract': check_tesseract(),
        'qr_decoder': check_zbar(),
        'browser': check_browser(),
        'upload_folder': check_upload_folder(),
    }


def provide_next_steps(checks):
    banner("NEXT STEPS")

    if not checks['python_version']:
        report('fail', "CRITICAL: Update Python to 3.9 or higher")
        return
    if not checks['packages']:
        report('warn', "Install missing Python packages first")
        return
    if not checks['tesseract']:
        report('warn', "Install Tesseract OCR")
        return
    if not checks['qr_decoder']:
        report('warn', "Install zbar or switch to the OpenCV decoder")
        return
    if not checks['browser']:
        report('warn', "Browser fallback unavailable - only plain HTTP verification will run")
        print("  Run: playwright install chromium")
        return

    report('ok', "ALL SETUP COMPLETE!")
    print("\nRun: acad-verify")
    print("\nThen open: http://127.0.0.1:5000")


def main():
    banner("ACAD CERTIFICATE VERIFIER - SETUP CHECKER")

    checks = run_checks()

    banner("SETUP STATUS SUMMARY")
    status_symbols = {
        True: paint(*MARKS['ok']),
        False: paint(*MARKS['fail']),
    }
    print(f"Python Version:      {status_symbols[checks['python_version']]}")
    print(f"Python Packages:     {status_symbols[checks['packages']]}")
    print(f"Tesseract OCR:       {status_symbols[checks['tesseract']]}")
    print(f"QR Decoder:          {status_symbols[checks['qr_decoder']]}")
    print(f"Headless Browser:    {status_symbols[checks['browser']]} (optional)")
    print(f"Upload Folder:       {status_symbols[checks['upload_folder']]}")

    passed = sum(1 for v in checks.values() if v)
    print()
    print(paint(f"Overall: {passed}/{len(checks)} checks passed", BOLD))

    provide_next_steps(checks)

    required = [k for k in checks if k != 'browser']
    return 0 if all(checks[k] for k in required) else 1


if __name__ == "__main__":
    sys.exit(main())
