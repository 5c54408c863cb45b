BUDGET_RANGES = [
    'Below PHP 10,000',
    'PHP 10,000 - 20,000',
    'PHP 20,000 - 40,000',
    'PHP 40,000 - 80,000',
    'PHP 80,000+',
]

CONTACT_METHODS = [
    'Email',
    'Phone Call',
    'Messenger',
    'WhatsApp',
    'Viber',
]

INDUSTRY_OPTIONS = [
    'Restaurant & Cafe',
    'Clinic & Healthcare',
    'Real Estate',
    'Beauty & Wellness',
    'Construction & Home Services',
    'Retail & E-commerce',
    'Professional Services',
    'Education & Training',
    'Travel & Hospitality',
    'Other',
]

STATIC_PUBLIC_PATHS = [
    '/',
    '/services',
    '/portfolio',
    '/pricing',
    '/process',
    '/contact',
    '/about',
]
