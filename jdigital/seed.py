import os
import secrets

from flask import current_app

from .models import (
    PROJECT_STATUS_CLIENT,
    PROJECT_STATUS_DEMO,
    SITE_SETTINGS_ID,
    db,
    Faq,
    PortfolioProject,
    PricingPackage,
    ProcessStep,
    ProjectCategory,
    ProjectImage,
    Service,
    SiteSettings,
    Testimonial,
    User,
)
from .site_data import FALLBACK_SITE_SETTINGS
from .utils import slugify

DEFAULT_SERVICES = [
    {
        'title': 'Website Design & Development',
        'slug': 'website-design-development',
        'short_description': 'Conversion-focused websites that position your business as premium and credible.',
        'description': 'Custom websites with high-converting layouts, clear messaging, and performance-first implementation for serious business growth.',
        'icon_key': 'Monitor',
        'position': 1,
    },
    {
        'title': 'Landing Pages for Ads',
        'slug': 'landing-pages-for-ads',
        'short_description': 'Ad-ready landing pages built to convert clicks into qualified inquiries.',
        'description': 'Purpose-built landing pages with persuasive sections, trust signals, and fast load times for paid traffic campaigns.',
        'icon_key': 'MousePointerClick',
        'position': 2,
    },
    {
        'title': 'E-Commerce / Online Store',
        'slug': 'ecommerce-online-store',
        'short_description': 'Online storefronts that make buying simple and increase order confidence.',
        'description': 'Secure and scalable e-commerce experiences with optimized product flow, checkout UX, and mobile-first shopping journeys.',
        'icon_key': 'ShoppingBag',
        'position': 3,
    },
    {
        'title': 'Website Speed & SEO Optimization',
        'slug': 'website-speed-seo-optimization',
        'short_description': 'Technical improvements to help your site rank better and convert faster.',
        'description': 'Performance tuning, technical SEO setup, and structure improvements to increase discoverability and user trust.',
        'icon_key': 'Gauge',
        'position': 4,
    },
    {
        'title': 'Maintenance & Support',
        'slug': 'maintenance-support',
        'short_description': 'Ongoing support so your website stays secure, updated, and reliable.',
        'description': 'Proactive maintenance, issue monitoring, and content updates so your team can focus on operating the business.',
        'icon_key': 'Wrench',
        'position': 5,
    },
]

DEFAULT_CATEGORIES = ['Construction', 'E-commerce', 'Consulting', 'Healthcare', 'Real Estate']

DEFAULT_PRICING = [
    {
        'name': 'Starter',
        'slug': 'starter',
        'price': 3999,
        'delivery': '3-5 Days',
        'includes': ['1-Page Landing Page', 'Mobile Responsive Design', 'Contact Form', 'Basic Setup', 'Live Deployment'],
        'freebies': ['Free Logo (Branding)', 'Free Consultation'],
        'note': 'Hosting & Domain NOT included',
        'is_popular': False,
    },
    {
        'name': 'Basic',
        'slug': 'basic',
        'price': 5999,
        'delivery': '3-7 Days',
        'includes': [
            'Up to 3 Pages', 'Mobile Responsive Design', 'Contact Form Integration',
            'Basic SEO Setup', 'Social Media Links', 'Live Deployment',
        ],
        'freebies': ['1 Year Hosting & Domain', 'Free Logo', 'Free Consultation'],
        'is_popular': False,
    },
    {
        'name': 'Startup',
        'slug': 'startup',
        'price': 14999,
        'delivery': '7-10 Days',
        'includes': [
            'Up to 5-7 Pages', 'Mobile Responsive Design', 'Custom Layout & Branding', 'Lead Capture Forms',
            'SEO-Ready Structure', 'SSL Secured', 'Speed & Performance Optimization', 'Google Indexing',
            'Live Deployment',
        ],
        'freebies': ['1 Year Hosting & Domain', 'Free Logo', 'Free Consultation'],
        'is_popular': True,
    },
    {
        'name': 'Professional',
        'slug': 'professional',
        'price': 26999,
        'delivery': '7-15 Days',
        'includes': [
            'Up to 8-10 Pages', 'Mobile Responsive Design', 'Fully Custom Website', 'Booking/Inquiry System',
            'Advanced SEO Structure', 'Security & Performance Setup', 'SSL', 'Admin/Staff Dashboard',
        ],
        'freebies': ['1 Year Hosting & Domain', 'Free Logo', 'Free Consultation'],
        'is_popular': False,
    },
    {
        'name': 'Business / E-Commerce',
        'slug': 'business-ecommerce',
        'price': 46999,
        'delivery': '7-20 Days',
        'includes': [
            '10+ Pages', 'Mobile Responsive Design', 'Online Store or Advanced System', 'Product/Service Setup',
            'Payment Integration (if required)', 'Advanced Optimization', 'Admin/Staff Dashboard',
            'Security & Performance Setup', 'SSL', 'Priority Support (30 days free)',
        ],
        'freebies': ['1 Year Hosting & Domain', 'Free Logo', 'Free Consultation'],
        'is_popular': False,
    },
]

DEFAULT_PROCESS_STEPS = [
    ('Discovery & Strategy', 'We align your business goals, market positioning, and conversion objectives.',
     ['Business intake', 'Competitor scan', 'Offer positioning', 'Content direction'], 'Day 1'),
    ('Structure & Wireframe', 'We create a conversion-first structure that guides visitors toward action.',
     ['Sitemap', 'Section hierarchy', 'Wireframe layout', 'CTA flow'], 'Day 1-2'),
    ('Design & Development', 'We build a premium, responsive website with clear trust signals and messaging.',
     ['Brand-aligned UI', 'Responsive implementation', 'CMS setup', 'Form systems'], 'Day 2-7'),
    ('Optimization & Testing', 'We optimize speed, SEO structure, and usability before launch.',
     ['Technical SEO', 'Performance tuning', 'QA testing', 'Cross-device checks'], 'Day 6-9'),
    ('Launch & Support', 'We deploy your website and ensure your team can manage content confidently.',
     ['Production launch', 'Admin handover', 'Tracking setup', 'Post-launch support'], 'Day 7-10'),
]

DEFAULT_FAQS = [
    ('How soon can we launch?',
     'Most projects launch within 3 to 15 days depending on scope, content readiness, and integrations.'),
    ('Do you provide content writing?',
     'Yes. We can help structure and polish your messaging so your offer is clear and conversion-focused.'),
    ('Can you redesign our existing website?',
     'Yes. We can redesign and rebuild your current website with better speed, trust, and lead generation.'),
    ('Do we get admin access?',
     'Yes. Every website includes secure admin access so you can update key content without developer dependency.'),
    ('Is this suitable for local Philippine businesses?',
     'Yes. Our process and messaging are tailored for Philippine audiences and local buyer behavior.'),
]

DEFAULT_PORTFOLIO = [
    ('MetroBuild Prime', 'Construction', 'Modern lead-generation site for a fast-growing contractor.',
     ['Construction', 'Lead Gen', 'Corporate']),
    ('Luna Cart Essentials', 'E-commerce', 'Product-focused online store with conversion-optimized checkout.',
     ['E-commerce', 'Retail', 'Conversion']),
    ('Axis Advisory Group', 'Consulting', 'Trust-first consulting website designed for executive buyers.',
     ['Consulting', 'B2B', 'Authority']),
    ('Carewell Medical Clinic', 'Healthcare', 'Patient inquiry website with mobile-first appointment requests.',
     ['Healthcare', 'Appointments', 'Local SEO']),
    ('Skyline Realty Hub', 'Real Estate', 'Premium property showcase platform with inquiry routing.',
     ['Real Estate', 'Showcase', 'Leads']),
]

DEFAULT_TESTIMONIALS = [
    ('Mark De Leon', 'Owner', 'MetroBuild Prime',
     'J-Digital helped us present our company professionally and increased inquiry quality in the first month.'),
    ('Alyssa Tan', 'Founder', 'Luna Cart Essentials',
     'Our new website finally reflects our brand. The structure is clear, fast, and made for conversion.'),
    ('Dr. Kevin Cruz', 'Clinic Director', 'Carewell Medical Clinic',
     'The team understood local patient behavior and built a smooth inquiry flow for mobile users.'),
]


def seed_admin_user():
    admin_email = (current_app.config.get('ADMIN_EMAIL') or 'admin@jdigital.local').strip().lower()
    env_password = os.environ.get('ADMIN_PASSWORD') or current_app.config.get('ADMIN_PASSWORD') or ''

    admin = User.query.filter_by(email=admin_email).first()
    if admin:
        # Always sync admin password with env var on startup
        if env_password and not admin.check_password(env_password):
            admin.set_password(env_password)
            db.session.commit()
        return admin

    if User.query.first() is not None:
        return None

    if not env_password:
        env_password = secrets.token_urlsafe(16)
        current_app.logger.warning(
            'ADMIN_PASSWORD not set. Seeded admin with a random password. '
            'Set ADMIN_PASSWORD and restart to rotate it to a known value.'
        )
    admin = User(email=admin_email, name='J-Digital Admin')
    admin.set_password(env_password)
    db.session.add(admin)
    db.session.commit()
    return admin


def seed_site_settings():
    if db.session.get(SiteSettings, SITE_SETTINGS_ID) is not None:
        return
    values = {key: value for key, value in FALLBACK_SITE_SETTINGS.items() if key != 'id'}
    db.session.add(SiteSettings(id=SITE_SETTINGS_ID, **values))
    db.session.commit()


def seed_content():
    if Service.query.first() is None:
        for item in DEFAULT_SERVICES:
            db.session.add(Service(is_active=True, **item))

    if ProjectCategory.query.first() is None:
        for position, name in enumerate(DEFAULT_CATEGORIES, start=1):
            db.session.add(ProjectCategory(name=name, slug=slugify(name), position=position, is_active=True))

    if PricingPackage.query.first() is None:
        for position, item in enumerate(DEFAULT_PRICING, start=1):
            db.session.add(PricingPackage(position=position, **item))

    if ProcessStep.query.first() is None:
        for position, (title, description, deliverables, timeline) in enumerate(DEFAULT_PROCESS_STEPS, start=1):
            db.session.add(ProcessStep(
                title=title,
                description=description,
                deliverables=deliverables,
                timeline=timeline,
                position=position,
            ))

    if Faq.query.first() is None:
        for position, (question, answer) in enumerate(DEFAULT_FAQS, start=1):
            db.session.add(Faq(question=question, answer=answer, position=position, is_published=True))

    if PortfolioProject.query.first() is None:
        for index, (title, industry, summary, tags) in enumerate(DEFAULT_PORTFOLIO):
            project = PortfolioProject(
                title=title,
                slug=slugify(title),
                industry=industry,
                short_summary=summary,
                tags=tags,
                cover_image=f'/placeholders/project-{index + 1}.svg',
                services_provided=['Website Design', 'Development', 'SEO Foundation'],
                status=PROJECT_STATUS_CLIENT if index % 2 == 0 else PROJECT_STATUS_DEMO,
                position=index + 1,
            )
            project.images = [
                ProjectImage(
                    url=f'/placeholders/project-{((index + offset) % len(DEFAULT_PORTFOLIO)) + 1}.svg',
                    alt=f'{title} gallery {offset}',
                    position=offset,
                )
                for offset in (1, 2)
            ]
            db.session.add(project)

    if Testimonial.query.first() is None:
        for position, (name, role, company, quote) in enumerate(DEFAULT_TESTIMONIALS, start=1):
            db.session.add(Testimonial(
                name=name,
                role=role,
                company=company,
                quote=quote,
                position=position,
                is_published=True,
            ))

    db.session.commit()


def seed_database():
    seed_admin_user()
    seed_site_settings()
    if current_app.config.get('SEED_DEFAULT_CONTENT', True):
        seed_content()
