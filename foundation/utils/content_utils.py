"""
Page content helpers.

- clean_image_url(url): keep only URLs the public site can render.
- clean_content(content): apply clean_image_url to every image-bearing key,
  recursively through nested dicts and lists.
"""

import logging
import re

logger = logging.getLogger(__name__)

IMAGE_KEYS = ('image', 'bannerImage', 'src')

_CLOUDINARY_VERSIONED = re.compile(r'/upload/v\d+/.+$')


def clean_image_url(url):
    """
    Normalize an image URL.

    Cloudinary URLs must carry a version segment (/upload/v123/...); local
    /uploads/ paths and anything that is not http(s) are dropped.
    """
    if not url or not isinstance(url, str):
        return None
    if 'cloudinary.com' in url:
        if _CLOUDINARY_VERSIONED.search(url):
            return url
        logger.debug("Dropping unversioned Cloudinary URL: %s", url)
        return None
    if url.startswith('/uploads/') or not url.startswith('http'):
        return None
    return url


def clean_content(content):
    if isinstance(content, list):
        return [clean_content(item) for item in content]
    if isinstance(content, dict):
        cleaned = {}
        for key, value in content.items():
            if key in IMAGE_KEYS:
                cleaned[key] = clean_image_url(value)
            elif isinstance(value, (dict, list)):
                cleaned[key] = clean_content(value)
            else:
                cleaned[key] = value
        return cleaned
    return content
