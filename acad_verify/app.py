#!/usr/bin/env python3
"""
ACAD - Certificate Verification Service
Flask front end for the QR/OCR certificate verification pipeline
"""

from flask import Flask, current_app, render_template_string, request, jsonify, url_for
import os
import io
import time
import base64
import shutil
import logging
import argparse
from datetime import datetime
from pathlib import Path

import qrcode
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from . import __version__, config
from .cleanup import start_periodic_cleanup
from .errors import OcrError
from .models import Status
from .ocr import tesseract_version
from .pipeline import CertificateVerifier, remove_artifact
from . import verifier as verifier_module

# Logging configuration
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEBUG_CERT_URLS = [
    'https://unstop.com/certificate-preview/{cert_id}',
    'https://www.credly.com/badges/{cert_id}',
]

# =====================
# HTML TEMPLATES
# =====================

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>ACAD Certificate Verifier</title>
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body { font-family: 'Segoe UI', sans-serif; background: #0a0a0a; min-height: 100vh; padding: 20px; color: #e0e0e0; }
        .container { max-width: 700px; margin: 0 auto; background: #1a1a1a; border-radius: 20px; box-shadow: 0 20px 60px rgba(0,0,0,0.8); overflow: hidden; border: 1px solid #2a2a2a; }
        .header { background: linear-gradient(135deg, #1a1a1a 0%, #2d2d2d 100%); padding: 30px; text-align: center; border-bottom: 2px solid #3a3a3a; }
        .header h1 { font-size: 1.8em; color: #ffffff; }
        .header p { font-size: 0.9em; color: #999; margin-top: 5px; }
        .content { padding: 40px; text-align: center; }
        .qr { background: #fff; padding: 15px; border-radius: 12px; display: inline-block; margin: 20px 0; }
        a.button { background: #2a2a2a; color: #e0e0e0; padding: 15px 30px; border-radius: 25px; display: inline-block; text-decoration: none; border: 1px solid #3a3a3a; }
        a.button:hover { background: #3a3a3a; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>&#127891; Certificate Verification</h1>
            <p>Scan to upload from your phone</p>
        </div>
        <div class="content">
            <div class="qr"><img src="data:image/png;base64,{{ qr_code }}" alt="Upload page QR code"></div>
            <p style="margin: 15px 0; color: #888;">or</p>
            <a class="button" href="{{ upload_url }}">Upload a certificate</a>
        </div>
    </div>
</body>
</html>"""

UPLOAD_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Verify Certificate</title>
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body { font-family: 'Segoe UI', sans-serif; background: #0a0a0a; min-height: 100vh; padding: 20px; color: #e0e0e0; }
        .container { max-width: 700px; margin: 0 auto; background: #1a1a1a; border-radius: 20px; box-shadow: 0 20px 60px rgba(0,0,0,0.8); overflow: hidden; border: 1px solid #2a2a2a; }
        .header { background: linear-gradient(135deg, #1a1a1a 0%, #2d2d2d 100%); padding: 30px; text-align: center; border-bottom: 2px solid #3a3a3a; }
        .header h1 { font-size: 1.8em; color: #ffffff; }
        .content { padding: 40px; }
        label { display: block; margin: 15px 0 8px; color: #ccc; }
        input[type=text], input[type=file] { width: 100%; padding: 12px; background: #0f0f0f; border: 1px solid #2a2a2a; border-radius: 8px; color: #e0e0e0; }
        .submit-btn { background: #2a2a2a; color: #e0e0e0; padding: 15px 40px; border: 1px solid #3a3a3a; border-radius: 25px; cursor: pointer; font-size: 1.1em; font-weight: 600; width: 100%; margin: 25px 0; }
        .submit-btn:disabled { opacity: 0.6; cursor: not-allowed; }
        .result { padding: 20px; border-radius: 10px; display: none; white-space: pre-wrap; }
        .Valid { background: #1a2f1a; border: 2px solid #2d5f2d; color: #5fb85f; }
        .Partial, .Unknown { background: #2f2a1a; border: 2px solid #5f542d; color: #ffb74d; }
        .Invalid, .Error, .NameMismatch { background: #2f1a1a; border: 2px solid #5f2d2d; color: #f77; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>&#127891; Verify Certificate</h1></div>
        <div class="content">
            <form id="verificationForm" enctype="multipart/form-data">
                <label for="name">Your name (optional)</label>
                <input type="text" id="name" name="name">
                <label for="certificate">Certificate image</label>
                <input type="file" id="certificate" name="certificate" accept="image/*" required>
                <button type="submit" id="submitBtn" class="submit-btn">Verify</button>
            </form>
            <div id="result" class="result"></div>
        </div>
    </div>
    <script>
        const form = document.getElementById('verificationForm');
        const resultDiv = document.getElementById('result');
        const submitBtn = document.getElementById('submitBtn');

        form.addEventListener('submit', async (e) => {
            e.preventDefault();
            const formData = new FormData(form);
            submitBtn.disabled = true;
            resultDiv.style.display = 'block';
            resultDiv.className = 'result';
            resultDiv.textContent = 'Processing certificate...';
            try {
                const response = await fetch('{{ verify_url }}', { method: 'POST', body: formData });
                const result = await response.json();
                resultDiv.className = 'result ' + result.status;
                const lines = ['Status: ' + result.status];
                if (result.verificationMethod) lines.push('Method: ' + result.verificationMethod);
                if (result.extractedUrl) lines.push('URL: ' + result.extractedUrl);
                if (result.details) {
                    if (result.details.recipientName) lines.push('Name: ' + result.details.recipientName);
                    if (result.details.courseName) lines.push('Course: ' + result.details.courseName);
                    if (result.details.issuer) lines.push('Issuer: ' + result.details.issuer);
                }
                if (result.reason) lines.push('Reason: ' + result.reason);
                resultDiv.textContent = lines.join('\\n');
            } catch (err) {
                resultDiv.className = 'result Error';
                resultDiv.textContent = 'An error occurred while verifying the certificate.';
            } finally {
                submitBtn.disabled = false;
            }
        });
    </script>
</body>
</html>"""

# =====================
# UTILITY FUNCTIONS
# =====================

def generate_qr_code(data):
    """Render `data` as a base64-encoded PNG QR code"""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return base64.b64encode(buffer.getvalue()).decode()


def save_upload(file):
    """Store an uploaded file under UPLOAD_FOLDER with a timestamped safe name"""
    folder = Path(current_app.config['UPLOAD_FOLDER'])
    folder.mkdir(parents=True, exist_ok=True)

    filename = secure_filename(file.filename or '') or 'certificate'
    filepath = folder / f"{int(time.time() * 1000)}_{filename}"
    file.save(str(filepath))
    logger.info(f"File uploaded: {filepath}")
    return str(filepath)


def get_verifier():
    return current_app.extensions['acad_verifier']


def invalid_upload(reason):
    return jsonify({'status': Status.INVALID.value, 'reason': reason}), 400

# =====================
# APPLICATION FACTORY
# =====================

def create_app(config_overrides=None, verifier=None):
    app = Flask(__name__)
    app.config.from_object(config.Config)
    app.json.sort_keys = False
    if config_overrides:
        app.config.update(config_overrides)

    app.extensions['acad_verifier'] = verifier or CertificateVerifier()

    @app.route('/')
    def index():
        """Landing page with a QR code linking to the upload form"""
        upload_url = request.url_root.rstrip('/') + url_for('certificate_verification')
        return render_template_string(
            INDEX_HTML,
            qr_code=generate_qr_code(upload_url),
            upload_url=url_for('certificate_verification'),
        )

    @app.route('/certificate_verification')
    def certificate_verification():
        return render_template_string(UPLOAD_HTML, verify_url=url_for('verify'))

    @app.route('/verify', methods=['POST'])
    def verify():
        """Verify an uploaded certificate and return the verdict"""
        file = request.files.get('certificate')
        caller_name = (request.form.get('name') or '').strip() or None

        logger.info("Received request to /verify")
        logger.info(f"User-provided name: {caller_name}")

        if file is None or not file.filename:
            logger.error("File upload failed: no certificate in request")
            return invalid_upload('File upload failed')

        if not (file.mimetype or '').startswith('image/'):
            return invalid_upload('Only image files (PNG, JPG, JPEG) are allowed')

        filepath = save_upload(file)
        verdict = get_verifier().verify(filepath, caller_name)
        payload = verdict.to_dict()
        logger.info(f"Sending response: {payload}")
        return jsonify(payload)

    @app.route('/test-ocr', methods=['POST'])
    def test_ocr():
        """Run OCR and URL extraction only"""
        file = request.files.get('certificate')
        if file is None or not file.filename:
            return jsonify({'error': 'No file uploaded'}), 400

        filepath = save_upload(file)
        verifier = get_verifier()
        try:
            logger.info("Testing OCR on uploaded image...")
            text = verifier.text_extractor.extract_text(filepath)
            found_url = verifier.url_extractor(text)
            return jsonify({
                'success': True,
                'extractedText': text,
                'foundUrl': found_url,
                'hasUrl': bool(found_url),
            })
        except OcrError as e:
            return jsonify({'success': False, 'error': str(e)})
        finally:
            remove_artifact(filepath)

    @app.route('/debug-cert/<cert_id>')
    def debug_cert(cert_id):
        """Show what can be scraped from the known platform URLs for a certificate id"""
        online_verifier = get_verifier().online_verifier
        results = []

        for template in DEBUG_CERT_URLS:
            url = template.format(cert_id=cert_id)
            logger.info(f"Testing URL: {url}")
            try:
                soup = online_verifier.fetch_page(url, timeout=config.DEBUG_FETCH_TIMEOUT)
            except Exception as e:
                results.append({'url': url, 'success': False, 'error': str(e)})
                continue

            body = soup.body.get_text(' ', strip=True) if soup.body else ''
            results.append({
                'url': url,
                'success': True,
                'title': soup.title.get_text(strip=True) if soup.title else '',
                'h1': [h.get_text(strip=True) for h in soup.find_all('h1')],
                'h2': [h.get_text(strip=True) for h in soup.find_all('h2')],
                'h3': [h.get_text(strip=True) for h in soup.find_all('h3')],
                'bodyText': body[:500],
            })
            break

        return jsonify(results)

    @app.route('/health')
    def health():
        """Health check"""
        version = tesseract_version()
        return jsonify({
            'status': 'healthy',
            'version': __version__,
            'tesseract_version': version,
            'tesseract_status': 'available' if version else 'unavailable',
            'qr_decoder': config.QR_DECODER,
            'browser_enabled': config.BROWSER_ENABLED,
            'playwright_available': verifier_module.HAS_PLAYWRIGHT,
            'upload_folder': app.config['UPLOAD_FOLDER'],
            'timestamp': datetime.now().isoformat(),
        })

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return jsonify({'status': Status.INVALID.value, 'reason': f'File exceeds the {limit_mb} MB upload limit'}), 413

    return app

# =====================
# APPLICATION ENTRY POINT
# =====================

def main():
    """Main application entry point"""
    parser = argparse.ArgumentParser(description='ACAD certificate verification server')
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=5000)
    parser.add_argument('--debug', action='store_true')
    args = parser.parse_args()

    print("=" * 80)
    print("ACAD - Certificate Verification Service")
    print("=" * 80)
    print()

    version = tesseract_version()
    if version:
        print(f"✓ Tesseract OCR detected: {version}")
    else:
        print("⚠ Tesseract OCR not found - OCR fallback will report errors")
        print("  Run acad-verify-doctor for installation help")

    app = create_app()
    upload_folder = app.config['UPLOAD_FOLDER']

    print("Starting background cleanup...")
    start_periodic_cleanup(upload_folder, app.config['UPLOAD_MAX_AGE'], app.config['CLEANUP_INTERVAL'])
    print()

    print("Configuration:")
    print(f"  QR decoder: {config.QR_DECODER}")
    print(f"  Browser fallback: {'Enabled' if config.BROWSER_ENABLED and verifier_module.HAS_PLAYWRIGHT else 'Disabled'}")
    print(f"  Upload folder: {upload_folder}")
    print()
    print(f"Access at: http://localhost:{args.port}")
    print("Press Ctrl+C to stop")
    print()

    try:
        app.run(host=args.host, port=args.port, debug=args.debug, threaded=True)
    except KeyboardInterrupt:
        print("\n\nShutting down...")
    finally:
        # Only remove the folder when it is our own temp directory
        if not os.getenv('ACAD_UPLOAD_FOLDER') and Path(upload_folder).exists():
            try:
                shutil.rmtree(upload_folder)
                print("Cleanup complete")
            except OSError as e:
                print(f"Cleanup warning: {e}")


if __name__ == '__main__':
    main()
