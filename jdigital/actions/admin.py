"""Admin mutations.

Each action takes the submitted form mapping and returns ``{'success': ...}``
or ``{'error': ...}``. ``admin_action`` enforces the session check, rolls back
on failure and drops the cached public views that embed the saved entity.
"""
from functools import wraps

from flask import current_app
from flask_login import current_user
from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import IntegrityError
from werkzeug.utils import secure_filename

from .. import repository
from ..cache import invalidate_entity
from ..errors import ActionError, Conflict, StorageError, Unauthorized
from ..forms import (
    AdminUserForm,
    FaqForm,
    LeadStatusForm,
    PasswordChangeForm,
    PortfolioForm,
    PricingForm,
    ProcessStepForm,
    ProjectCategoryForm,
    ServiceForm,
    SiteSettingsForm,
    TestimonialForm,
    validate_payload,
)
from ..models import SITE_SETTINGS_ID, MediaAsset, SiteSettings, User, db
from ..storage import build_object_path, delete_object, missing_storage_env_vars, storage_bucket, upload_object
from ..utils import nullable, parse_list, sanitize_html, slugify

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
EXTENSION_MIME_TYPES = {
    'png': {'image/png'},
    'jpg': {'image/jpeg'},
    'jpeg': {'image/jpeg'},
    'gif': {'image/gif'},
    'webp': {'image/webp'},
    'pdf': {'application/pdf'},
}
OPTIONAL_SETTINGS_FIELDS = (
    'phone',
    'email',
    'office_address',
    'whatsapp_link',
    'messenger_link',
    'message_button_link',
    'calendar_booking_link',
    'facebook_url',
    'instagram_url',
    'linkedin_url',
)


def require_admin():
    if not current_user or not current_user.is_authenticated:
        raise Unauthorized()
    return current_user


def admin_action(entity):
    def decorator(func):
        @wraps(func)
        def wrapper(form, *args, **kwargs):
            require_admin()
            try:
                result = func(form or {}, *args, **kwargs)
            except ActionError as e:
                db.session.rollback()
                return {'error': e.message}
            invalidate_entity(entity)
            return result
        return wrapper
    return decorator


def _value(form, key):
    value = form.get(key)
    return '' if value is None else str(value).strip()


def _require_id(form, message):
    item_id = _value(form, 'id')
    if not item_id:
        raise ActionError(message)
    return item_id


@admin_action('settings')
def save_site_settings(form):
    data = validate_payload(SiteSettingsForm, form)
    for field in OPTIONAL_SETTINGS_FIELDS:
        data[field] = nullable(data.get(field))

    settings = db.session.get(SiteSettings, SITE_SETTINGS_ID)
    if settings is None:
        settings = SiteSettings(id=SITE_SETTINGS_ID)
        db.session.add(settings)
    for field in SiteSettings.FIELDS:
        setattr(settings, field, data[field])
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict('Unable to save site settings.')
    return {'success': 'Site settings updated.'}


@admin_action('service')
def save_service(form):
    data = validate_payload(ServiceForm, form)
    slug = slugify(data['slug'])
    if not slug:
        raise ActionError('Unable to generate a valid slug.')
    repository.services.save(_value(form, 'id'), {
        'title': data['title'],
        'slug': slug,
        'short_description': data['short_description'],
        'description': sanitize_html(data['description']),
        'icon_key': nullable(data['icon_key']),
        'position': data['position'],
        'is_active': data['is_active'],
    })
    return {'success': 'Service saved.'}


@admin_action('service')
def delete_service(form):
    repository.services.delete(_require_id(form, 'Missing service ID.'))
    return {'success': 'Service deleted.'}


@admin_action('portfolio')
def save_portfolio(form):
    data = validate_payload(PortfolioForm, form)
    title = data['title']
    industry = data['industry']
    slug = slugify(data['slug'] or title)
    if not slug:
        raise ActionError('Unable to generate a valid slug from title.')

    values = {
        'title': title,
        'slug': slug,
        'industry': industry,
        'short_summary': nullable(data['short_summary']) or f'Homepage preview of {title} for {industry}.',
        'tags': parse_list(data['tags']) or [industry, 'Website Homepage'],
        'cover_image': data['cover_image'],
        'services_provided': parse_list(data['services_provided']) or ['Website Design'],
        'live_link': nullable(data['live_link']),
        'status': data['status'],
        'position': data['position'],
    }
    # An absent gallery field leaves the stored gallery untouched.
    gallery = parse_list(data['gallery_images']) if 'gallery_images' in form else None
    repository.portfolio.save(_value(form, 'id'), values, gallery=gallery)
    return {'success': 'Project saved.'}


@admin_action('portfolio')
def delete_portfolio(form):
    repository.portfolio.delete(_require_id(form, 'Missing project ID.'))
    return {'success': 'Project deleted.'}


@admin_action('category')
def save_project_category(form):
    data = validate_payload(ProjectCategoryForm, form)
    slug = slugify(data['slug'] or data['name'])
    if not slug:
        raise ActionError('Unable to generate a valid slug from name.')
    repository.categories.save(_value(form, 'id'), {
        'name': data['name'],
        'slug': slug,
        'position': data['position'],
        'is_active': data['is_active'],
    })
    return {'success': 'Project category saved.'}


@admin_action('category')
def delete_project_category(form):
    repository.categories.delete(_require_id(form, 'Missing category ID.'))
    return {'success': 'Project category deleted.'}


@admin_action('process')
def save_process_step(form):
    data = validate_payload(ProcessStepForm, form)
    repository.process_steps.save(_value(form, 'id'), {
        'title': data['title'],
        'description': data['description'],
        'deliverables': parse_list(data['deliverables']),
        'timeline': data['timeline'],
        'position': data['position'],
    })
    return {'success': 'Process step saved.'}


@admin_action('process')
def delete_process_step(form):
    repository.process_steps.delete(_require_id(form, 'Missing process step ID.'))
    return {'success': 'Process step deleted.'}


@admin_action('pricing')
def save_pricing(form):
    data = validate_payload(PricingForm, form)
    slug = slugify(data['slug'])
    if not slug:
        raise ActionError('Unable to generate a valid slug.')
    repository.pricing.save(_value(form, 'id'), {
        'name': data['name'],
        'slug': slug,
        'price': data['price'],
        'delivery': data['delivery'],
        'includes': parse_list(data['includes']),
        'freebies': parse_list(data['freebies']),
        'note': nullable(data['note']),
        'is_popular': data['is_popular'],
        'position': data['position'],
    })
    return {'success': 'Pricing package saved.'}


@admin_action('pricing')
def delete_pricing(form):
    repository.pricing.delete(_require_id(form, 'Missing package ID.'))
    return {'success': 'Pricing package deleted.'}


@admin_action('faq')
def save_faq(form):
    data = validate_payload(FaqForm, form)
    repository.faqs.save(_value(form, 'id'), {
        'question': data['question'],
        'answer': sanitize_html(data['answer']),
        'position': data['position'],
        'is_published': data['is_published'],
    })
    return {'success': 'FAQ saved.'}


@admin_action('faq')
def delete_faq(form):
    repository.faqs.delete(_require_id(form, 'Missing FAQ ID.'))
    return {'success': 'FAQ deleted.'}


@admin_action('testimonial')
def save_testimonial(form):
    data = validate_payload(TestimonialForm, form)
    repository.testimonials.save(_value(form, 'id'), {
        'name': data['name'],
        'role': data['role'],
        'company': data['company'],
        'quote': data['quote'],
        'avatar_url': nullable(data['avatar_url']),
        'position': data['position'],
        'is_published': data['is_published'],
    })
    return {'success': 'Testimonial saved.'}


@admin_action('testimonial')
def delete_testimonial(form):
    repository.testimonials.delete(_require_id(form, 'Missing testimonial ID.'))
    return {'success': 'Testimonial deleted.'}


@admin_action('lead')
def save_lead_status(form):
    if not _value(form, 'id') or not _value(form, 'status'):
        raise ActionError('Missing lead ID or status.')
    data = validate_payload(LeadStatusForm, form)
    repository.leads.update(_value(form, 'id'), {'status': data['status']})
    return {'success': 'Lead status updated.'}


def validate_uploaded_file(file):
    if not file or not file.filename:
        return False

    filename = secure_filename(file.filename)
    if not filename or len(filename) > 180 or '.' not in filename:
        return False

    extension = filename.rsplit('.', 1)[1].lower()
    if extension not in current_app.config['ALLOWED_EXTENSIONS']:
        return False
    mime_type = (file.mimetype or '').split(';', 1)[0].lower()
    allowed_mimes = current_app.config.get('ALLOWED_UPLOAD_MIME_TYPES', set())
    if (
        mime_type not in allowed_mimes
        or extension not in EXTENSION_MIME_TYPES
        or mime_type not in EXTENSION_MIME_TYPES[extension]
    ):
        return False

    file.stream.seek(0)
    if extension == 'pdf':
        signature = file.stream.read(5)
        file.stream.seek(0)
        return signature == b'%PDF-'

    max_pixels = max(1, int(current_app.config.get('MAX_UPLOAD_IMAGE_PIXELS', 40_000_000)))
    try:
        with Image.open(file.stream) as image:
            width, height = image.size
            if width < 1 or height < 1 or (width * height) > max_pixels:
                return False
            image.verify()
        return True
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        return False
    finally:
        file.stream.seek(0)


@admin_action('media')
def upload_media(form, files=None):
    file = (files or {}).get('file')
    if not file or not file.filename:
        raise ActionError('Please choose a file.')

    missing = missing_storage_env_vars()
    if missing:
        raise ActionError(f'Missing env vars: {", ".join(missing)}. Add them to the environment and restart the app.')

    if not validate_uploaded_file(file):
        raise ActionError('Invalid file type or unsafe file content.')

    bucket = storage_bucket()
    data = file.stream.read()
    object_path = build_object_path(file.filename)
    mime_type = (file.mimetype or '').split(';', 1)[0].lower() or 'application/octet-stream'
    url = upload_object(bucket, object_path, data, content_type=mime_type)

    repository.media.create({
        'file_name': file.filename[:300],
        'bucket': bucket,
        'path': object_path,
        'url': url,
        'mime_type': mime_type,
        'size': len(data),
        'uploaded_by_id': current_user.id,
    })
    return {'success': 'File uploaded.', 'url': url}


@admin_action('media')
def delete_media(form):
    item = repository.media.get(_require_id(form, 'Missing media ID.'))
    try:
        delete_object(item.bucket, item.path)
    except StorageError:
        current_app.logger.warning('Storage delete failed for %s; removing the media record anyway.', item.path)
    db.session.delete(item)
    repository.media.commit()
    return {'success': 'Media deleted.'}


@admin_action('user')
def change_password(form):
    data = validate_payload(PasswordChangeForm, form)
    user = db.session.get(User, current_user.id)
    if user is None:
        raise ActionError('User not found.')
    if not user.check_password(data['current_password']):
        raise ActionError('Current password is incorrect.')
    user.set_password(data['new_password'])
    db.session.commit()
    return {'success': 'Password updated.'}


@admin_action('user')
def create_admin_user(form):
    data = validate_payload(AdminUserForm, form)
    user = User(email=data['email'].lower(), name=nullable(data['name']) or 'Admin')
    user.set_password(data['password'])
    db.session.add(user)
    repository.users.commit()
    return {'success': 'Admin user created.'}


@admin_action('user')
def delete_admin_user(form):
    user = repository.users.get(_require_id(form, 'Missing user ID.'))
    if user.id == current_user.id:
        raise ActionError('You cannot delete your own account.')
    if User.query.count() <= 1:
        raise ActionError('Cannot delete the last admin user.')
    MediaAsset.query.filter_by(uploaded_by_id=user.id).update({MediaAsset.uploaded_by_id: None})
    db.session.delete(user)
    db.session.commit()
    return {'success': 'Admin user deleted.'}
