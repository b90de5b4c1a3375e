"""
Document and Photo Storage
==========================

Customer photos and KYC documents are stored in Cloudinary as
authenticated assets. The app only needs two things: put a blob under a
key, and get back a URL that stops working after a while. Staff profile
photos are ordinary public images.
"""

import logging
import time

import cloudinary
import cloudinary.uploader
import cloudinary.utils
from django.conf import settings

logger = logging.getLogger(__name__)

DOCUMENT_FOLDER = 'customers/kyc'
PHOTO_FOLDER = 'customers/photos'
PROFILE_PHOTO_FOLDER = 'staff/profile_photos'


def document_key(customer_id, kind, filename):
    """Storage key for a customer's document, e.g. customers/kyc/<id>/aadhaar"""
    folder = PHOTO_FOLDER if kind == 'photo' else DOCUMENT_FOLDER
    stem = filename.rsplit('.', 1)[0] if filename else kind
    return f"{folder}/{customer_id}/{kind}-{stem}"


def upload_document(file_obj, key):
    """
    Upload a file under key

    Returns:
        str: the stored public id (the key)
    """
    result = cloudinary.uploader.upload(
        file_obj,
        public_id=key,
        type='authenticated',
        resource_type='auto',
        overwrite=True,
    )
    logger.info(f"Stored document {result.get('public_id', key)}")
    return result.get('public_id', key)


def signed_document_url(key, ttl=None, file_format=''):
    """Time-limited download URL for a stored document"""
    if not key:
        return None
    if ttl is None:
        ttl = getattr(settings, 'COLLECT_DOCUMENT_URL_TTL', 3600)
    return cloudinary.utils.private_download_url(
        key,
        file_format,
        type='authenticated',
        resource_type='image',
        expires_at=int(time.time()) + int(ttl),
    )


def upload_profile_photo(file_obj, user_id):
    """Replace a staff member's profile photo, returns its public id"""
    result = cloudinary.uploader.upload(
        file_obj,
        public_id=f"{PROFILE_PHOTO_FOLDER}/{user_id}",
        resource_type='image',
        overwrite=True,
        invalidate=True,
    )
    logger.info(f"Stored profile photo for {user_id}")
    return result.get('public_id', f"{PROFILE_PHOTO_FOLDER}/{user_id}")


def profile_photo_url(photo):
    """Public URL of a profile photo, or None when none is set"""
    public_id = getattr(photo, 'public_id', photo)
    if not public_id:
        return None
    return cloudinary.CloudinaryImage(public_id).build_url(secure=True)
