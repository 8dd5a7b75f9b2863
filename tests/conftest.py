"""Shared test fixtures for the certificate verifier test suite."""

import io
import os

import pytest
import qrcode
from PIL import Image, ImageDraw


os.environ.setdefault("ACAD_LOG_LEVEL", "WARNING")


def make_qr_image(data, box_size=10, border=4):
    """A clean RGB QR code image encoding `data`."""
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    buffer = io.BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buffer, format="PNG")
    buffer.seek(0)
    return Image.open(buffer).convert("RGB")


@pytest.fixture
def qr_image():
    return make_qr_image("https://credly.com/badges/abc123")


@pytest.fixture
def sample_image():
    """A small certificate-like RGB image with some shapes and text."""
    image = Image.new("RGB", (120, 80), (250, 245, 230))
    draw = ImageDraw.Draw(image)
    draw.rectangle((5, 5, 115, 75), outline=(90, 60, 20), width=3)
    draw.text((20, 30), "Certificate", fill=(20, 20, 20))
    draw.ellipse((90, 50, 110, 70), fill=(200, 30, 30))
    return image


@pytest.fixture
def upload_file(tmp_path, sample_image):
    """A certificate image saved to disk, as the upload route would leave it."""
    path = tmp_path / "upload.png"
    sample_image.save(path, format="PNG")
    return path


@pytest.fixture
def certificate_html():
    return """
    <html>
      <head><title>Credential Verification</title></head>
      <body>
        <h1>Certificate of Completion</h1>
        <div class="recipient-name">Jane Doe</div>
        <div class="course">Machine Learning Specialization</div>
        <span class="issuer">Stanford Online</span>
        <span class="issue-date">March 3, 2024</span>
        <p>This credential has been verified.</p>
      </body>
    </html>
    """
