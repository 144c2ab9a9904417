"""
Page Content Model

FLOW OVERVIEW
- PageContent: one JSON document per public page (page_name unique).
- get_page(page): stored content (images cleaned) or the page's default layout.
- save_page(page, content): clean images, give every feature an explicit image,
  then insert or replace the stored document.
"""

import copy
from datetime import datetime

from .database import db
from .utils import isoformat
from ..utils.content_utils import clean_content
from ..utils.errors import ValidationError

EDITABLE_PAGES = ['home', 'story', 'team', 'community', 'graduates', 'partner', 'contact', 'life']

_GENERIC_DEFAULT = {'bannerImage': '', 'sections': []}

_PAGE_DEFAULTS = {
    'life': {
        'bannerImage': '',
        'headerText': 'Welcome to the heart of KM Foundation',
        'description': ('where every individual, staff, sponsored students, and sponsors, '
                        'plays a vital role...'),
        'tabs': ['All', 'Educating the Young', 'Health and Nutrition', 'Special Programs'],
        'galleryImages': [],
    },
    'contact': {
        'mainHeading': 'Contact Us',
        'mainDescription': 'If you have further questions...',
        'email': 'Kmkkpayatas@gmail.com',
        'phone': '321-221-221',
        'sections': [
            {'title': 'Contact Support',
             'description': 'Provides exceptional customer assistance...'},
            {'title': 'Feedback and Suggestions',
             'description': 'Collects, analyzes, and addresses user feedback...'},
            {'title': 'Made Inquiries',
             'description': 'Handles and responds to inquiries efficiently...'},
        ],
        'locationHeading': 'Our location',
        'locationTitle': 'Connecting Near and Far',
        'locationSubHeading': 'Headquarters',
        'address': [],
    },
    'partner': {
        'bannerImage': '',
        'sections': [
            {'title': 'Philippines Humanitarian', 'text': '', 'image': '', 'caption': None},
            {'title': '', 'text': '', 'image': '', 'caption': None},
        ],
    },
    'graduates': {
        'bannerImage': '',
        'headerText': 'Graduate Testimonials',
        'subText': '',
        'testimonials': [],
    },
    'community': {
        'bannerImage': '',
        'headerText': 'Our Community',
        'subText': '',
        'testimonials': [],
    },
}


def default_content(page):
    return {
        'page_name': page,
        'content': copy.deepcopy(_PAGE_DEFAULTS.get(page, _GENERIC_DEFAULT)),
    }


class PageContent(db.Model):
    """Editable content of a public page"""
    __tablename__ = 'page_content'

    id = db.Column(db.Integer, primary_key=True)
    page_name = db.Column(db.String(100), unique=True, nullable=False)
    content = db.Column(db.JSON)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'page_name': self.page_name,
            'content': clean_content(self.content) if self.content else self.content,
            'updated_at': isoformat(self.updated_at),
        }

    @classmethod
    def get_page(cls, page):
        row = cls.query.filter_by(page_name=page).first()
        return row.to_dict() if row else default_content(page)

    @classmethod
    def save_page(cls, page, content):
        if not isinstance(content, dict):
            raise ValidationError('Invalid content data')
        cleaned = clean_content(content)
        if isinstance(cleaned.get('features'), list):
            cleaned['features'] = [
                dict(feature, image=feature.get('image') or None) if isinstance(feature, dict) else feature
                for feature in cleaned['features']
            ]

        row = cls.query.filter_by(page_name=page).first()
        if row is None:
            row = cls(page_name=page)
            db.session.add(row)
        row.content = cleaned
        row.updated_at = datetime.utcnow()
        db.session.commit()
        return row
