from flask import Blueprint, Response, current_app, jsonify, request, session
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy import or_
from werkzeug.security import check_password_hash, generate_password_hash

from .. import get_csrf_token, repository
from ..actions import admin as actions
from ..errors import ValidationFailed
from ..forms import LoginForm, validate_payload
from ..models import LEAD_STATUS_NEW, Lead, SiteSettings, SITE_SETTINGS_ID, User, db, normalize_lead_status, utc_now_naive
from ..rate_limit import get_rate_limiter
from ..site_data import FALLBACK_SITE_SETTINGS
from ..utils import client_ip, escape_like, parse_int, to_csv_cell

admin_bp = Blueprint('admin', __name__)
AUTH_DUMMY_HASH = generate_password_hash('jdigital::dummy-auth-check')
LEADS_PAGE_SIZE = 12
RECENT_LEADS_LIMIT = 5
EXPORT_HEADERS = [
    'Date',
    'Type',
    'Name',
    'Email',
    'Mobile',
    'Business',
    'Website/Facebook',
    'Industry',
    'Package',
    'Budget',
    'Preferred Contact',
    'Preferred Contact Details',
    'Status',
    'Message',
]


def _form():
    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    return request.form


def _action_response(result):
    if 'error' in result:
        return jsonify(result), 400
    return jsonify(result)


def _login_key():
    return f'{client_ip()}-admin-login'


def _login_quota():
    return (
        int(current_app.config.get('ADMIN_LOGIN_LIMIT', 5)),
        int(current_app.config.get('ADMIN_LOGIN_WINDOW_SECONDS', 300)),
    )


# Auth
@admin_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'GET':
        return jsonify({
            'authenticated': bool(current_user.is_authenticated),
            'csrf_token': get_csrf_token(),
        })

    limiter = get_rate_limiter()
    key = _login_key()
    limit, window = _login_quota()
    state = limiter.peek(key, limit, window)
    if not state.allowed:
        response = jsonify({'error': f'Too many login attempts. Try again in {state.retry_after} seconds.'})
        response.headers['Retry-After'] = str(state.retry_after)
        return response, 429

    try:
        data = validate_payload(LoginForm, _form())
    except ValidationFailed:
        data = None

    user = None
    password_ok = False
    if data:
        user = User.query.filter_by(email=data['email'].lower()).first()
        if user:
            password_ok = user.check_password(data['password'])
        else:
            # Keep response timing closer for unknown emails.
            check_password_hash(AUTH_DUMMY_HASH, data['password'] or '')

    if user and password_ok:
        limiter.reset(key)
        session.clear()
        login_user(user)
        current_app.logger.info('Admin %s signed in.', user.email)
        return jsonify({'success': 'Signed in.', 'user': user.to_dict(), 'csrf_token': get_csrf_token()})

    result = limiter.check(key, limit, window)
    remaining = result.remaining if result.allowed else 0
    current_app.logger.warning('Failed admin login attempt from %s.', client_ip())
    if remaining == 0:
        return jsonify({'error': 'Too many failed attempts. Please wait 5 minutes and try again.'}), 401
    return jsonify({'error': f'Invalid credentials. {remaining} attempt(s) remaining before temporary lock.'}), 401


@admin_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    session.clear()
    return jsonify({'success': 'Signed out.'})


# Dashboard
@admin_bp.route('/')
@login_required
def dashboard():
    return jsonify({
        'user': current_user.to_dict(),
        'counts': {
            'services': repository.services.count(),
            'portfolio': repository.portfolio.count(),
            'pricing': repository.pricing.count(),
            'faqs': repository.faqs.count(),
            'testimonials': repository.testimonials.count(),
            'leads': repository.leads.count(),
            'new_leads': repository.leads.count([Lead.status == LEAD_STATUS_NEW]),
            'media': repository.media.count(),
        },
        'recent_leads': [lead.to_dict() for lead in repository.leads.list(page=1, page_size=RECENT_LEADS_LIMIT)],
    })


# Leads
def _lead_filters():
    filters = []
    q = (request.args.get('q') or '').strip()
    if q:
        pattern = f'%{escape_like(q)}%'
        filters.append(or_(
            Lead.full_name.ilike(pattern, escape='\\'),
            Lead.email.ilike(pattern, escape='\\'),
            Lead.business_name.ilike(pattern, escape='\\'),
        ))
    status = normalize_lead_status(request.args.get('status'))
    if status:
        filters.append(Lead.status == status)
    return filters, q, status


@admin_bp.route('/leads')
@login_required
def leads():
    filters, q, status = _lead_filters()
    page = max(1, parse_int(request.args.get('page'), default=1))
    total = repository.leads.count(filters)
    items = repository.leads.list(filters, page=page, page_size=LEADS_PAGE_SIZE)
    return jsonify({
        'leads': [lead.to_dict() for lead in items],
        'total': total,
        'page': page,
        'page_size': LEADS_PAGE_SIZE,
        'pages': max(1, -(-total // LEADS_PAGE_SIZE)),
        'q': q,
        'status': status,
    })


@admin_bp.route('/leads/status', methods=['POST'])
@login_required
def lead_status():
    return _action_response(actions.save_lead_status(_form()))


@admin_bp.route('/leads/export')
@login_required
def export_leads():
    rows = [EXPORT_HEADERS]
    for lead in repository.leads.list():
        rows.append([
            lead.created_at.isoformat() if lead.created_at else '',
            lead.lead_type,
            lead.full_name,
            lead.email,
            lead.mobile_number,
            lead.business_name,
            lead.website_or_facebook_link,
            lead.industry,
            lead.package_interest,
            lead.budget_range,
            lead.preferred_contact_method,
            lead.preferred_contact_value,
            lead.status,
            lead.message_goals,
        ])
    body = '\n'.join(','.join(to_csv_cell(cell) for cell in row) for row in rows)
    filename = f'jdigital-leads-{utc_now_naive().date().isoformat()}.csv'
    return Response(
        body,
        headers={
            'Content-Type': 'text/csv; charset=utf-8',
            'Content-Disposition': f'attachment; filename="{filename}"',
        },
    )


# Site settings
@admin_bp.route('/settings', methods=['GET', 'POST'])
@login_required
def settings():
    if request.method == 'POST':
        return _action_response(actions.save_site_settings(_form()))
    item = db.session.get(SiteSettings, SITE_SETTINGS_ID)
    return jsonify({'settings': item.to_dict() if item else dict(FALLBACK_SITE_SETTINGS)})


def _register_collection(name, repo, save, delete):
    def listing():
        return jsonify({name: [item.to_dict() for item in repo.list()]})

    def save_view():
        return _action_response(save(_form()))

    def delete_view():
        return _action_response(delete(_form()))

    admin_bp.add_url_rule(f'/{name}', f'{name}_list', login_required(listing))
    admin_bp.add_url_rule(f'/{name}', f'{name}_save', login_required(save_view), methods=['POST'])
    admin_bp.add_url_rule(f'/{name}/delete', f'{name}_delete', login_required(delete_view), methods=['POST'])


_register_collection('services', repository.services, actions.save_service, actions.delete_service)
_register_collection('portfolio', repository.portfolio, actions.save_portfolio, actions.delete_portfolio)
_register_collection(
    'categories', repository.categories, actions.save_project_category, actions.delete_project_category
)
_register_collection('process', repository.process_steps, actions.save_process_step, actions.delete_process_step)
_register_collection('pricing', repository.pricing, actions.save_pricing, actions.delete_pricing)
_register_collection('faqs', repository.faqs, actions.save_faq, actions.delete_faq)
_register_collection('testimonials', repository.testimonials, actions.save_testimonial, actions.delete_testimonial)


# Media
@admin_bp.route('/media')
@login_required
def media():
    return jsonify({'media': [item.to_dict() for item in repository.media.list()]})


@admin_bp.route('/media', methods=['POST'])
@login_required
def media_upload():
    return _action_response(actions.upload_media(request.form, files=request.files))


@admin_bp.route('/media/delete', methods=['POST'])
@login_required
def media_delete():
    return _action_response(actions.delete_media(_form()))


# Users
@admin_bp.route('/users')
@login_required
def users():
    return jsonify({
        'users': [user.to_dict() for user in repository.users.list()],
        'current_user_id': current_user.id,
    })


@admin_bp.route('/users', methods=['POST'])
@login_required
def users_create():
    return _action_response(actions.create_admin_user(_form()))


@admin_bp.route('/users/delete', methods=['POST'])
@login_required
def users_delete():
    return _action_response(actions.delete_admin_user(_form()))


@admin_bp.route('/password', methods=['POST'])
@login_required
def password():
    return _action_response(actions.change_password(_form()))
