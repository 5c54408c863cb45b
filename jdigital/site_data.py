"""Read path for the public pages.

Every builder returns a plain dict payload. A database failure is logged and
answered with fallback settings and empty collections so public pages keep
rendering.
"""
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .constants import BUDGET_RANGES, CONTACT_METHODS, INDUSTRY_OPTIONS
from .models import (
    SITE_SETTINGS_ID,
    Faq,
    PortfolioProject,
    PricingPackage,
    ProcessStep,
    Service,
    SiteSettings,
    Testimonial,
    db,
)
from .utils import normalize_industry

HOME_PORTFOLIO_LIMIT = 30
HOME_FAQ_LIMIT = 6
PRICING_FAQ_LIMIT = 5
FALLBACK_PACKAGE_NAMES = ['Starter', 'Basic', 'Startup', 'Professional', 'Business / E-Commerce']

FALLBACK_SITE_SETTINGS = {
    'id': SITE_SETTINGS_ID,
    'brand_name': 'J-Digital Solutions',
    'hero_headline': 'Turn Your Website Into a 24/7 Client-Generating System',
    'hero_subheadline': (
        'We design and build premium websites for Philippine businesses that improve trust, '
        'capture leads, and drive consistent growth.'
    ),
    'primary_cta_label': 'Book Free Consultation',
    'primary_cta_link': '/contact?package=startup',
    'secondary_cta_label': 'View Portfolio',
    'secondary_cta_link': '/portfolio',
    'phone': '0927 495 0610',
    'email': 'jdigitalsolutions27@gmail.com',
    'office_address': None,
    'whatsapp_link': None,
    'messenger_link': 'https://m.me/jdigitalsolutions',
    'message_button_label': 'Message Us',
    'message_button_link': 'https://m.me/jdigitalsolutions',
    'calendar_booking_link': None,
    'facebook_url': 'https://www.facebook.com/jdigitalsolutions',
    'instagram_url': None,
    'linkedin_url': None,
    'seo_default_title': 'J-Digital Solutions | Premium Websites for Philippine Businesses',
    'seo_default_description': (
        'J-Digital Solutions creates conversion-focused websites, landing pages, and growth systems '
        'for Philippine SMEs and local brands.'
    ),
    'highlight_package_slug': 'startup',
    'testimonials_enabled': False,
}


def get_site_settings():
    try:
        settings = db.session.get(SiteSettings, SITE_SETTINGS_ID)
        if settings is None:
            settings = SiteSettings(
                id=SITE_SETTINGS_ID,
                hero_headline=FALLBACK_SITE_SETTINGS['hero_headline'],
                hero_subheadline=FALLBACK_SITE_SETTINGS['hero_subheadline'],
                seo_default_title=FALLBACK_SITE_SETTINGS['seo_default_title'],
                seo_default_description=FALLBACK_SITE_SETTINGS['seo_default_description'],
            )
            db.session.add(settings)
            db.session.commit()
        return settings.to_dict()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Database unavailable while loading site settings. Using fallback settings.')
        return dict(FALLBACK_SITE_SETTINGS)


def _dicts(items, **kwargs):
    return [item.to_dict(**kwargs) for item in items]


def get_public_data():
    try:
        settings = get_site_settings()
        # One session transaction, so the homepage holds a single pooled connection.
        services = Service.query.filter_by(is_active=True).order_by(Service.position.asc(), Service.created_at.asc()).all()
        portfolio = (
            PortfolioProject.query.order_by(PortfolioProject.position.asc(), PortfolioProject.created_at.desc())
            .limit(HOME_PORTFOLIO_LIMIT)
            .all()
        )
        process = ProcessStep.query.order_by(ProcessStep.position.asc(), ProcessStep.created_at.asc()).all()
        pricing = PricingPackage.query.order_by(PricingPackage.position.asc(), PricingPackage.created_at.asc()).all()
        faq = (
            Faq.query.filter_by(is_published=True)
            .order_by(Faq.position.asc(), Faq.created_at.asc())
            .limit(HOME_FAQ_LIMIT)
            .all()
        )
        testimonials = (
            Testimonial.query.filter_by(is_published=True)
            .order_by(Testimonial.position.asc(), Testimonial.created_at.asc())
            .all()
        )
        return {
            'settings': settings,
            'services': _dicts(services),
            'portfolio': _dicts(portfolio),
            'process': _dicts(process),
            'pricing': _dicts(pricing),
            'faq': _dicts(faq),
            'testimonials': _dicts(testimonials),
        }
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Database unavailable while loading public data. Returning fallback content.')
        return {
            'settings': dict(FALLBACK_SITE_SETTINGS),
            'services': [],
            'portfolio': [],
            'process': [],
            'pricing': [],
            'faq': [],
            'testimonials': [],
        }


def _safe_query(description, build, fallback):
    try:
        return build()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Database unavailable while loading %s.', description)
        return fallback


def get_services_page():
    services = _safe_query(
        'services',
        lambda: Service.query.filter_by(is_active=True).order_by(Service.position.asc(), Service.created_at.asc()).all(),
        [],
    )
    return {'settings': get_site_settings(), 'services': _dicts(services)}


def get_portfolio_page(industry=None):
    projects = _safe_query(
        'portfolio',
        lambda: PortfolioProject.query.order_by(
            PortfolioProject.position.asc(), PortfolioProject.created_at.desc()
        ).all(),
        [],
    )
    industries = []
    seen = set()
    for project in projects:
        normalized = normalize_industry(project.industry)
        if normalized and normalized not in seen:
            seen.add(normalized)
            industries.append({'value': normalized, 'label': ' '.join(project.industry.split())})

    active = normalize_industry(industry)
    if active:
        projects = [project for project in projects if normalize_industry(project.industry) == active]
    return {
        'settings': get_site_settings(),
        'projects': _dicts(projects, include_gallery=True),
        'industries': industries,
        'active_industry': active or None,
    }


def get_project_detail(slug):
    project = _safe_query(
        'portfolio project',
        lambda: PortfolioProject.query.filter_by(slug=(slug or '').strip().lower()).first(),
        None,
    )
    if project is None:
        return None
    return {'settings': get_site_settings(), 'project': project.to_dict(include_gallery=True)}


def get_pricing_page():
    packages = _safe_query(
        'pricing',
        lambda: PricingPackage.query.order_by(PricingPackage.position.asc(), PricingPackage.created_at.asc()).all(),
        [],
    )
    faqs = _safe_query(
        'pricing FAQs',
        lambda: Faq.query.filter_by(is_published=True)
        .order_by(Faq.position.asc(), Faq.created_at.asc())
        .limit(PRICING_FAQ_LIMIT)
        .all(),
        [],
    )
    return {'settings': get_site_settings(), 'pricing': _dicts(packages), 'faq': _dicts(faqs)}


def get_process_page():
    steps = _safe_query(
        'process steps',
        lambda: ProcessStep.query.order_by(ProcessStep.position.asc(), ProcessStep.created_at.asc()).all(),
        [],
    )
    return {'settings': get_site_settings(), 'process': _dicts(steps)}


def get_contact_page(requested_package=None):
    settings = get_site_settings()
    packages = _safe_query(
        'pricing',
        lambda: PricingPackage.query.order_by(PricingPackage.position.asc(), PricingPackage.created_at.asc()).all(),
        [],
    )
    faqs = _safe_query(
        'contact FAQs',
        lambda: Faq.query.filter_by(is_published=True)
        .order_by(Faq.position.asc(), Faq.created_at.asc())
        .limit(HOME_FAQ_LIMIT)
        .all(),
        [],
    )
    package_options = [package.name for package in packages] or list(FALLBACK_PACKAGE_NAMES)

    highlighted = None
    for package in packages:
        if package.slug == settings.get('highlight_package_slug'):
            highlighted = package.to_dict()
            break

    default_package = package_options[0]
    wanted = (requested_package or '').strip().lower()
    if wanted:
        for package in packages:
            if wanted in (package.slug.lower(), package.name.lower()):
                default_package = package.name
                break
        else:
            for name in package_options:
                if name.lower() == wanted:
                    default_package = name
                    break

    return {
        'settings': settings,
        'package_options': package_options,
        'default_package': default_package,
        'highlighted_package': highlighted,
        'faq': _dicts(faqs),
        'budget_ranges': list(BUDGET_RANGES),
        'default_budget_range': BUDGET_RANGES[1],
        'contact_methods': list(CONTACT_METHODS),
        'industry_options': list(INDUSTRY_OPTIONS),
    }


def get_about_page():
    settings = get_site_settings()
    testimonials = []
    if settings.get('testimonials_enabled'):
        testimonials = _safe_query(
            'testimonials',
            lambda: Testimonial.query.filter_by(is_published=True)
            .order_by(Testimonial.position.asc(), Testimonial.created_at.asc())
            .all(),
            [],
        )
    return {'settings': settings, 'testimonials': _dicts(testimonials)}


def get_portfolio_slugs():
    return _safe_query(
        'portfolio slugs',
        lambda: [row.slug for row in PortfolioProject.query.order_by(PortfolioProject.position.asc()).all()],
        [],
    )
