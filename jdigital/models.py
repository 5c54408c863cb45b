from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

SITE_SETTINGS_ID = 1

LEAD_STATUS_NEW = 'NEW'
LEAD_STATUS_CONTACTED = 'CONTACTED'
LEAD_STATUS_QUALIFIED = 'QUALIFIED'
LEAD_STATUS_CLOSED = 'CLOSED'
LEAD_STATUS_LOST = 'LOST'
LEAD_STATUSES = (
    LEAD_STATUS_NEW,
    LEAD_STATUS_CONTACTED,
    LEAD_STATUS_QUALIFIED,
    LEAD_STATUS_CLOSED,
    LEAD_STATUS_LOST,
)

LEAD_TYPE_CONSULTATION = 'CONSULTATION'
LEAD_TYPE_AUDIT = 'AUDIT'
LEAD_TYPES = (LEAD_TYPE_CONSULTATION, LEAD_TYPE_AUDIT)

PROJECT_STATUS_DEMO = 'DEMO'
PROJECT_STATUS_CLIENT = 'CLIENT'
PROJECT_STATUSES = (PROJECT_STATUS_DEMO, PROJECT_STATUS_CLIENT)


def utc_now_naive():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


def normalize_lead_status(value, default=None):
    candidate = (value or '').strip().upper()
    if candidate in LEAD_STATUSES:
        return candidate
    return default


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'created_at': _iso(self.created_at),
        }


class SiteSettings(db.Model):
    __tablename__ = 'site_settings'

    id = db.Column(db.Integer, primary_key=True, default=SITE_SETTINGS_ID)
    brand_name = db.Column(db.String(200), nullable=False, default='J-Digital Solutions')
    hero_headline = db.Column(db.String(300), nullable=False)
    hero_subheadline = db.Column(db.Text, nullable=False)
    primary_cta_label = db.Column(db.String(120), nullable=False, default='Book Free Consultation')
    primary_cta_link = db.Column(db.String(300), nullable=False, default='/contact?package=startup')
    secondary_cta_label = db.Column(db.String(120), nullable=False, default='View Portfolio')
    secondary_cta_link = db.Column(db.String(300), nullable=False, default='/portfolio')
    phone = db.Column(db.String(80))
    email = db.Column(db.String(200))
    office_address = db.Column(db.String(400))
    whatsapp_link = db.Column(db.String(300))
    messenger_link = db.Column(db.String(300))
    message_button_label = db.Column(db.String(120), nullable=False, default='Message Us')
    message_button_link = db.Column(db.String(300))
    calendar_booking_link = db.Column(db.String(300))
    facebook_url = db.Column(db.String(300))
    instagram_url = db.Column(db.String(300))
    linkedin_url = db.Column(db.String(300))
    seo_default_title = db.Column(db.String(300), nullable=False)
    seo_default_description = db.Column(db.Text, nullable=False)
    highlight_package_slug = db.Column(db.String(200), nullable=False, default='startup')
    testimonials_enabled = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    FIELDS = (
        'brand_name',
        'hero_headline',
        'hero_subheadline',
        'primary_cta_label',
        'primary_cta_link',
        'secondary_cta_label',
        'secondary_cta_link',
        'phone',
        'email',
        'office_address',
        'whatsapp_link',
        'messenger_link',
        'message_button_label',
        'message_button_link',
        'calendar_booking_link',
        'facebook_url',
        'instagram_url',
        'linkedin_url',
        'seo_default_title',
        'seo_default_description',
        'highlight_package_slug',
        'testimonials_enabled',
    )

    def to_dict(self):
        payload = {'id': self.id}
        for field in self.FIELDS:
            payload[field] = getattr(self, field)
        return payload


class Service(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    short_description = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=False)
    icon_key = db.Column(db.String(100))
    position = db.Column(db.Integer, nullable=False, default=0, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'short_description': self.short_description,
            'description': self.description,
            'icon_key': self.icon_key,
            'position': self.position,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
        }


class PortfolioProject(db.Model):
    __tablename__ = 'portfolio_project'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    industry = db.Column(db.String(120), nullable=False, index=True)
    short_summary = db.Column(db.String(500))
    tags = db.Column(db.JSON, nullable=False, default=list)
    cover_image = db.Column(db.String(500), nullable=False)
    services_provided = db.Column(db.JSON, nullable=False, default=list)
    live_link = db.Column(db.String(500))
    status = db.Column(db.String(20), nullable=False, default=PROJECT_STATUS_DEMO)
    position = db.Column(db.Integer, nullable=False, default=0, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)
    images = db.relationship(
        'ProjectImage',
        backref='project',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='ProjectImage.position',
    )

    def to_dict(self, include_gallery=False):
        payload = {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'industry': self.industry,
            'short_summary': self.short_summary,
            'tags': list(self.tags or []),
            'cover_image': self.cover_image,
            'services_provided': list(self.services_provided or []),
            'live_link': self.live_link,
            'status': self.status,
            'position': self.position,
            'created_at': _iso(self.created_at),
        }
        if include_gallery:
            payload['gallery'] = [image.to_dict() for image in self.images]
        return payload


class ProjectImage(db.Model):
    __tablename__ = 'project_image'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('portfolio_project.id'), nullable=False, index=True)
    url = db.Column(db.String(500), nullable=False)
    alt = db.Column(db.String(300))
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def to_dict(self):
        return {'id': self.id, 'url': self.url, 'alt': self.alt, 'position': self.position}


class ProjectCategory(db.Model):
    __tablename__ = 'project_category'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'position': self.position,
            'is_active': self.is_active,
        }


class ProcessStep(db.Model):
    __tablename__ = 'process_step'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    deliverables = db.Column(db.JSON, nullable=False, default=list)
    timeline = db.Column(db.String(80), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'deliverables': list(self.deliverables or []),
            'timeline': self.timeline,
            'position': self.position,
        }


class PricingPackage(db.Model):
    __tablename__ = 'pricing_package'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False)
    price = db.Column(db.Integer, nullable=False, default=0)
    delivery = db.Column(db.String(80), nullable=False)
    includes = db.Column(db.JSON, nullable=False, default=list)
    freebies = db.Column(db.JSON, nullable=False, default=list)
    note = db.Column(db.String(300))
    is_popular = db.Column(db.Boolean, nullable=False, default=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now_naive)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'price': self.price,
            'delivery': self.delivery,
            'includes': list(self.includes or []),
            'freebies': list(self.freebies or []),
            'note': self.note,
            'is_popular': self.is_popular,
            'position': self.position,
        }


class Faq(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.String(300), nullable=False)
    answer = db.Column(db.Text, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    is_published = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'answer': self.answer,
            'position': self.position,
            'is_published': self.is_published,
        }


class Testimonial(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(200), nullable=False)
    company = db.Column(db.String(200), nullable=False)
    quote = db.Column(db.Text, nullable=False)
    avatar_url = db.Column(db.String(500))
    position = db.Column(db.Integer, nullable=False, default=0)
    is_published = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role,
            'company': self.company,
            'quote': self.quote,
            'avatar_url': self.avatar_url,
            'position': self.position,
            'is_published': self.is_published,
        }


class Lead(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False, index=True)
    mobile_number = db.Column(db.String(80), nullable=False)
    business_name = db.Column(db.String(200), nullable=False)
    website_or_facebook_link = db.Column(db.String(500))
    industry = db.Column(db.String(120), nullable=False)
    package_interest = db.Column(db.String(120), nullable=False)
    budget_range = db.Column(db.String(120), nullable=False)
    preferred_contact_method = db.Column(db.String(80), nullable=False)
    preferred_contact_value = db.Column(db.String(300))
    message_goals = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=LEAD_STATUS_NEW, index=True)
    lead_type = db.Column(db.String(20), nullable=False, default=LEAD_TYPE_CONSULTATION, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, index=True)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'email': self.email,
            'mobile_number': self.mobile_number,
            'business_name': self.business_name,
            'website_or_facebook_link': self.website_or_facebook_link,
            'industry': self.industry,
            'package_interest': self.package_interest,
            'budget_range': self.budget_range,
            'preferred_contact_method': self.preferred_contact_method,
            'preferred_contact_value': self.preferred_contact_value,
            'message_goals': self.message_goals,
            'status': self.status,
            'lead_type': self.lead_type,
            'created_at': _iso(self.created_at),
        }


class MediaAsset(db.Model):
    __tablename__ = 'media_asset'

    id = db.Column(db.Integer, primary_key=True)
    file_name = db.Column(db.String(300), nullable=False)
    bucket = db.Column(db.String(120), nullable=False)
    path = db.Column(db.String(500), nullable=False)
    url = db.Column(db.String(800), nullable=False)
    mime_type = db.Column(db.String(100))
    size = db.Column(db.Integer)
    uploaded_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'file_name': self.file_name,
            'bucket': self.bucket,
            'path': self.path,
            'url': self.url,
            'mime_type': self.mime_type,
            'size': self.size,
            'uploaded_by_id': self.uploaded_by_id,
            'created_at': _iso(self.created_at),
        }


class RateLimitBucket(db.Model):
    __tablename__ = 'rate_limit_bucket'

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(80), nullable=False, index=True)
    key = db.Column(db.String(200), nullable=False, index=True)
    count = db.Column(db.Integer, nullable=False, default=0)
    reset_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)

    __table_args__ = (
        db.UniqueConstraint('scope', 'key', name='uq_rate_limit_scope_key'),
        db.Index('ix_rate_limit_scope_reset_at', 'scope', 'reset_at'),
    )
