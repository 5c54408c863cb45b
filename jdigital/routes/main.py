from html import escape as xml_escape

from flask import Blueprint, Response, abort, current_app, jsonify, request, url_for

from .. import get_csrf_token, site_data
from ..actions.public import submit_audit_lead, submit_lead
from ..cache import get_view_cache
from ..constants import STATIC_PUBLIC_PATHS
from ..utils import client_ip

main_bp = Blueprint('main', __name__)


@main_bp.after_request
def add_public_cache_headers(response):
    if request.method == 'GET' and response.status_code == 200 and not request.path.startswith('/api/'):
        cache_control = current_app.config.get('PUBLIC_CACHE_CONTROL')
        if cache_control:
            response.headers.setdefault('Cache-Control', cache_control)
    return response


def _cached(path, build):
    return jsonify(get_view_cache().get_or_build(path, build))


def _submission_payload():
    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    return request.form


def _submission_response(result):
    if result.get('success'):
        return jsonify(result), 200
    if 'retry_after' in result:
        response = jsonify(result)
        response.headers['Retry-After'] = str(result['retry_after'])
        return response, 429
    return jsonify(result), 400


@main_bp.route('/')
def index():
    return _cached('/', site_data.get_public_data)


@main_bp.route('/services')
def services():
    return _cached('/services', site_data.get_services_page)


@main_bp.route('/portfolio')
def portfolio():
    industry = (request.args.get('industry') or '').strip()
    if industry:
        return jsonify(site_data.get_portfolio_page(industry))
    return _cached('/portfolio', site_data.get_portfolio_page)


@main_bp.route('/portfolio/<slug>')
def portfolio_detail(slug):
    path = f'/portfolio/{slug}'
    cache = get_view_cache()
    payload = cache.get(path)
    if payload is None:
        payload = site_data.get_project_detail(slug)
        if payload is None:
            abort(404, description='Project not found.')
        cache.set(path, payload)
    return jsonify(payload)


@main_bp.route('/pricing')
def pricing():
    return _cached('/pricing', site_data.get_pricing_page)


@main_bp.route('/process')
def process():
    return _cached('/process', site_data.get_process_page)


@main_bp.route('/contact')
def contact():
    package = (request.args.get('package') or '').strip()
    if package:
        return jsonify(site_data.get_contact_page(package))
    return _cached('/contact', site_data.get_contact_page)


@main_bp.route('/about')
def about():
    return _cached('/about', site_data.get_about_page)


@main_bp.route('/api/csrf-token')
def csrf_token():
    return jsonify({'csrf_token': get_csrf_token()})


@main_bp.route('/api/leads', methods=['POST'])
def create_lead():
    return _submission_response(submit_lead(_submission_payload(), client_key=client_ip()))


@main_bp.route('/api/audit-leads', methods=['POST'])
def create_audit_lead():
    return _submission_response(submit_audit_lead(_submission_payload(), client_key=client_ip()))


@main_bp.route('/sitemap.xml')
def sitemap():
    base = (current_app.config.get('APP_BASE_URL') or request.url_root).rstrip('/')
    paths = list(STATIC_PUBLIC_PATHS)
    paths.extend(url_for('main.portfolio_detail', slug=slug) for slug in site_data.get_portfolio_slugs())
    entries = []
    for path in paths:
        loc = base + ('' if path == '/' else path)
        priority = '1.0' if path == '/' else '0.8'
        frequency = 'weekly' if path == '/' else 'monthly'
        entries.append(
            f'  <url><loc>{xml_escape(loc)}</loc><changefreq>{frequency}</changefreq><priority>{priority}</priority></url>'
        )
    xml = '\n'.join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        *entries,
        '</urlset>',
    ])
    return Response(xml, mimetype='application/xml')


@main_bp.route('/robots.txt')
def robots():
    base = (current_app.config.get('APP_BASE_URL') or request.url_root).rstrip('/')
    body = '\n'.join([
        'User-agent: *',
        'Allow: /',
        'Disallow: /admin',
        f'Sitemap: {base}/sitemap.xml',
        '',
    ])
    return Response(body, mimetype='text/plain')
