"""
PDF upload route.

Saves the uploaded PDF under a fresh basename and runs the conversion
pipeline synchronously. The response lists the rendered page URLs for
both paper sizes.
"""

from pathlib import Path

from flask import Blueprint, request

from core.exceptions import PisoPrintError
from logging_config import get_logger
from routes.helpers import failure, failure_from, get_service
from services.conversion_service import make_basename


# Module logger
logger = get_logger(__name__)

upload_bp = Blueprint("upload", __name__)

# Constants
PDF_MIMETYPE = "application/pdf"
UPLOAD_FIELD = "pdfFile"
MAX_FILENAME_LENGTH = 255


@upload_bp.route("/upload", methods=["POST"])
def upload():
    """
    Accept a single PDF and convert it.

    Returns:
        {success, images: {letter, legal}, totalPages, originalSize, baseName}
        or {success: false, message}
    """
    pdf_file = request.files.get(UPLOAD_FIELD)

    # Validation: File required
    if not pdf_file or not pdf_file.filename:
        return failure("No file uploaded")

    # Validation: Only PDFs
    if pdf_file.mimetype != PDF_MIMETYPE:
        return failure("Only PDF files are allowed")

    # Validation: Filename length
    if len(pdf_file.filename) > MAX_FILENAME_LENGTH:
        return failure(f"Filename too long. Maximum {MAX_FILENAME_LENGTH} characters.")

    conversion_service = get_service("CONVERSION_SERVICE")
    basename = make_basename(pdf_file.filename)
    stored_path = Path(conversion_service.upload_dir) / f"{basename}.pdf"

    try:
        logger.info(f"Saving uploaded file: {stored_path.name}")
        pdf_file.save(stored_path)

        session = conversion_service.convert_upload(stored_path, basename)
        return session.to_response()

    except PisoPrintError as e:
        logger.error(f"Upload failed: {e}")
        return failure_from(e)
    except Exception as e:
        logger.error(f"Upload failed: {e}", exc_info=True)
        stored_path.unlink(missing_ok=True)
        return failure(str(e) or "Conversion failed")
