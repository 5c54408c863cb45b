"""WTForms schemas for public submissions and admin content forms.

Forms are plain ``wtforms.Form`` classes fed a MultiDict, so the same schema
validates HTML form posts and JSON payloads. CSRF is enforced globally in
``create_app``.
"""
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField, Form, IntegerField, PasswordField, SelectField, StringField, TextAreaField
from wtforms.validators import URL, DataRequired, EqualTo, Length, NumberRange, Optional, Regexp

from .errors import ValidationFailed
from .models import LEAD_STATUSES, PROJECT_STATUSES
from .utils import EMAIL_RE

INVALID_LINK_MESSAGE = 'Please provide a valid website or Facebook link.'


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class PositionField(IntegerField):
    """Integer field that keeps its default when the submitted value is blank."""

    def process_formdata(self, valuelist):
        if valuelist and not str(valuelist[0]).strip():
            return
        super().process_formdata(valuelist)


def _email(required=True):
    validators = [DataRequired()] if required else [Optional()]
    validators.append(Regexp(EMAIL_RE, message='Invalid email address.'))
    validators.append(Length(max=200))
    return validators


def _optional_url(max_length=300):
    return [Optional(), URL(message='Invalid url.'), Length(max=max_length)]


def _text(min_length, max_length=255, message=None):
    return [DataRequired(message=message), Length(min=min_length, max=max_length, message=message)]


def _position():
    return PositionField('Position', default=0, validators=[NumberRange(min=0)])


class LeadForm(Form):
    full_name = StringField('Full name', filters=[_strip], validators=_text(2, 200))
    email = StringField('Email', filters=[_strip], validators=_email())
    mobile_number = StringField('Mobile number', filters=[_strip], validators=_text(8, 80))
    business_name = StringField('Business name', filters=[_strip], validators=_text(2, 200))
    industry = StringField('Industry', filters=[_strip], validators=_text(2, 120))
    package_interest = StringField('Package of interest', filters=[_strip], validators=_text(2, 120))
    budget_range = StringField('Budget range', filters=[_strip], validators=_text(2, 120))
    preferred_contact_method = StringField('Preferred contact method', filters=[_strip], validators=_text(2, 80))
    preferred_contact_value = StringField(
        'Preferred contact details', filters=[_strip], validators=[Optional(), Length(max=300)]
    )
    message_goals = TextAreaField(
        'Message or goals',
        filters=[_strip],
        validators=_text(1, 5000, message='Please enter your message or goals.'),
    )


class AuditLeadForm(Form):
    full_name = StringField('Full name', filters=[_strip], validators=_text(2, 200))
    email = StringField('Email', filters=[_strip], validators=_email())
    business_name = StringField('Business name', filters=[_strip], validators=_text(2, 200))
    website_or_facebook_link = StringField(
        'Website or Facebook link',
        filters=[_strip],
        validators=[
            DataRequired(message=INVALID_LINK_MESSAGE),
            URL(message=INVALID_LINK_MESSAGE),
            Length(max=500),
        ],
    )


class SiteSettingsForm(Form):
    brand_name = StringField('Brand name', filters=[_strip], validators=_text(2, 200))
    hero_headline = StringField('Hero headline', filters=[_strip], validators=_text(10, 300))
    hero_subheadline = TextAreaField('Hero subheadline', filters=[_strip], validators=_text(20, 2000))
    primary_cta_label = StringField('Primary CTA label', filters=[_strip], validators=_text(2, 120))
    primary_cta_link = StringField('Primary CTA link', filters=[_strip], validators=_text(1, 300))
    secondary_cta_label = StringField('Secondary CTA label', filters=[_strip], validators=_text(2, 120))
    secondary_cta_link = StringField('Secondary CTA link', filters=[_strip], validators=_text(1, 300))
    phone = StringField('Phone', filters=[_strip], validators=[Optional(), Length(max=80)])
    email = StringField('Email', filters=[_strip], validators=_email(required=False))
    office_address = StringField('Office address', filters=[_strip], validators=[Optional(), Length(max=400)])
    whatsapp_link = StringField('WhatsApp link', filters=[_strip], validators=_optional_url())
    messenger_link = StringField('Messenger link', filters=[_strip], validators=_optional_url())
    message_button_label = StringField('Message button label', filters=[_strip], validators=_text(2, 120))
    message_button_link = StringField('Message button link', filters=[_strip], validators=_optional_url())
    calendar_booking_link = StringField('Calendar booking link', filters=[_strip], validators=_optional_url())
    facebook_url = StringField('Facebook URL', filters=[_strip], validators=_optional_url())
    instagram_url = StringField('Instagram URL', filters=[_strip], validators=_optional_url())
    linkedin_url = StringField('LinkedIn URL', filters=[_strip], validators=_optional_url())
    seo_default_title = StringField('SEO title', filters=[_strip], validators=_text(10, 300))
    seo_default_description = TextAreaField('SEO description', filters=[_strip], validators=_text(20, 2000))
    highlight_package_slug = StringField('Highlighted package slug', filters=[_strip], validators=_text(1, 200))
    testimonials_enabled = BooleanField('Testimonials enabled')


class ServiceForm(Form):
    title = StringField('Title', filters=[_strip], validators=_text(3, 200))
    slug = StringField('Slug', filters=[_strip], validators=_text(3, 200))
    short_description = StringField('Short description', filters=[_strip], validators=_text(10, 500))
    description = TextAreaField('Description', filters=[_strip], validators=_text(20, 20000))
    icon_key = StringField('Icon key', filters=[_strip], validators=[Optional(), Length(max=100)])
    position = _position()
    is_active = BooleanField('Active')


class PortfolioForm(Form):
    title = StringField('Title', filters=[_strip], validators=_text(2, 200))
    slug = StringField('Slug', filters=[_strip], validators=[Optional(), Length(max=200)])
    industry = StringField('Industry', filters=[_strip], validators=_text(2, 120))
    short_summary = StringField('Short summary', filters=[_strip], validators=[Optional(), Length(max=500)])
    tags = TextAreaField('Tags', filters=[_strip], validators=[Optional()])
    cover_image = StringField('Cover image', filters=[_strip], validators=_text(1, 500))
    services_provided = TextAreaField('Services provided', filters=[_strip], validators=[Optional()])
    gallery_images = TextAreaField('Gallery images', filters=[_strip], validators=[Optional()])
    live_link = StringField('Live link', filters=[_strip], validators=_optional_url(500))
    status = SelectField('Status', choices=[(value, value) for value in PROJECT_STATUSES])
    position = _position()


class ProjectCategoryForm(Form):
    name = StringField('Name', filters=[_strip], validators=_text(2, 120))
    slug = StringField('Slug', filters=[_strip], validators=[Optional(), Length(max=120)])
    position = _position()
    is_active = BooleanField('Active')


class ProcessStepForm(Form):
    title = StringField('Title', filters=[_strip], validators=_text(3, 200))
    description = TextAreaField('Description', filters=[_strip], validators=_text(10, 5000))
    deliverables = TextAreaField('Deliverables', filters=[_strip], validators=_text(1, 5000))
    timeline = StringField('Timeline', filters=[_strip], validators=_text(2, 80))
    position = _position()


class PricingForm(Form):
    name = StringField('Name', filters=[_strip], validators=_text(2, 120))
    slug = StringField('Slug', filters=[_strip], validators=_text(2, 120))
    price = PositionField('Price', default=0, validators=[NumberRange(min=0)])
    delivery = StringField('Delivery', filters=[_strip], validators=_text(2, 80))
    includes = TextAreaField('Includes', filters=[_strip], validators=_text(1, 5000))
    freebies = TextAreaField('Freebies', filters=[_strip], validators=_text(1, 5000))
    note = StringField('Note', filters=[_strip], validators=[Optional(), Length(max=300)])
    is_popular = BooleanField('Most popular')
    position = _position()


class FaqForm(Form):
    question = StringField('Question', filters=[_strip], validators=_text(5, 300))
    answer = TextAreaField('Answer', filters=[_strip], validators=_text(10, 10000))
    position = _position()
    is_published = BooleanField('Published')


class TestimonialForm(Form):
    name = StringField('Name', filters=[_strip], validators=_text(2, 200))
    role = StringField('Role', filters=[_strip], validators=_text(2, 200))
    company = StringField('Company', filters=[_strip], validators=_text(2, 200))
    quote = TextAreaField('Quote', filters=[_strip], validators=_text(10, 5000))
    avatar_url = StringField('Avatar URL', filters=[_strip], validators=[Optional(), Length(max=500)])
    position = _position()
    is_published = BooleanField('Published')


class LeadStatusForm(Form):
    status = SelectField('Status', choices=[(value, value) for value in LEAD_STATUSES])


class LoginForm(Form):
    email = StringField('Email', filters=[_strip], validators=_email())
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8, max=200)])


class PasswordChangeForm(Form):
    current_password = PasswordField('Current password', validators=[DataRequired(), Length(min=8, max=200)])
    new_password = PasswordField('New password', validators=[DataRequired(), Length(min=10, max=200)])
    confirm_password = PasswordField(
        'Confirm password',
        validators=[
            DataRequired(),
            Length(min=10, max=200),
            EqualTo('new_password', message='Passwords do not match'),
        ],
    )


class AdminUserForm(Form):
    email = StringField('Email', filters=[_strip], validators=_email())
    password = PasswordField(
        'Password',
        filters=[_strip],
        validators=[
            DataRequired(message='Email and a strong password are required.'),
            Length(min=10, max=200, message='Email and a strong password are required.'),
        ],
    )
    name = StringField('Name', filters=[_strip], validators=[Optional(), Length(max=200)])


def build_formdata(data):
    if isinstance(data, MultiDict):
        return data
    formdata = MultiDict()
    for key, value in (data or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = '\n'.join(str(item) for item in value)
        elif isinstance(value, bool):
            # BooleanField treats '' as false.
            value = 'y' if value else ''
        elif not isinstance(value, str):
            value = str(value)
        formdata.add(key, value)
    return formdata


def validate_payload(form_class, data):
    form = form_class(formdata=build_formdata(data))
    if form.validate():
        return form.data

    errors = {}
    first_message = None
    for field in form:
        if not field.errors:
            continue
        errors[field.name] = list(field.errors)
        if first_message is None:
            first_message = f'{field.label.text}: {field.errors[0]}'
    raise ValidationFailed(errors, message=first_message)
