import os
import random
import time
import logging

from werkzeug.utils import secure_filename

logger = logging.getLogger('main')

UPLOAD_URL_PREFIX = '/uploads'


def generate_upload_name(original_filename, clock=time.time):
    """``<ms timestamp>-<random>.<ext>`` keeping the original extension"""
    ext = os.path.splitext(secure_filename(original_filename or ''))[1].lower()
    return f"{int(clock() * 1000)}-{random.randint(0, 10**9)}{ext}"


def save_upload(file_storage, upload_dir, category):
    """
    Store an uploaded file under upload_dir/category and return its public path.

    Returns None when no file was submitted.
    """
    if file_storage is None or not file_storage.filename:
        return None

    category = secure_filename(category)
    target_dir = os.path.join(upload_dir, category)
    os.makedirs(target_dir, exist_ok=True)

    filename = generate_upload_name(file_storage.filename)
    file_storage.save(os.path.join(target_dir, filename))
    logger.info(f"Stored upload {file_storage.filename} as {category}/{filename}")
    return f"{UPLOAD_URL_PREFIX}/{category}/{filename}"
