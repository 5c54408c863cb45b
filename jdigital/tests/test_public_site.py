from jdigital import site_data
from jdigital.cache import get_view_cache
from jdigital.models import SiteSettings, User, db
from jdigital.seed import seed_admin_user

from .conftest import ADMIN_EMAIL, admin_login, admin_post, build_test_app


def test_homepage_returns_seeded_content(client):
    response = client.get("/")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["settings"]["brand_name"] == "J-Digital Solutions"
    assert len(payload["services"]) == 5
    assert [package["slug"] for package in payload["pricing"] if package["is_popular"]] == ["startup"]
    assert len(payload["faq"]) == 5
    assert len(payload["portfolio"]) == 5


def test_public_pages_render(client):
    for path in ["/services", "/portfolio", "/pricing", "/process", "/contact", "/about"]:
        response = client.get(path)
        assert response.status_code == 200, path
        assert "settings" in response.get_json()

    about = client.get("/about").get_json()
    assert about["testimonials"] == []


def test_portfolio_industry_filter_and_detail(client):
    filtered = client.get("/portfolio?industry=%20real%20%20ESTATE").get_json()
    assert [project["title"] for project in filtered["projects"]] == ["Skyline Realty Hub"]
    assert filtered["active_industry"] == "real estate"
    assert {"value": "construction", "label": "Construction"} in filtered["industries"]

    detail = client.get("/portfolio/metrobuild-prime")
    assert detail.status_code == 200
    project = detail.get_json()["project"]
    assert project["title"] == "MetroBuild Prime"
    assert len(project["gallery"]) == 2

    missing = client.get("/portfolio/does-not-exist")
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "Project not found."}


def test_contact_page_preselects_requested_package(client):
    payload = client.get("/contact?package=professional").get_json()
    assert payload["default_package"] == "Professional"
    assert payload["highlighted_package"]["slug"] == "startup"
    assert payload["default_budget_range"] == "PHP 10,000 - 20,000"
    assert "Viber" in payload["contact_methods"]

    fallback = client.get("/contact?package=unknown").get_json()
    assert fallback["default_package"] == "Starter"


def test_site_settings_row_is_created_on_first_read(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {"SEED_DEFAULT_CONTENT": False})
    with app.app_context():
        db.session.delete(db.session.get(SiteSettings, 1))
        db.session.commit()

        settings = site_data.get_site_settings()
        assert settings["id"] == 1
        assert settings["hero_headline"] == site_data.FALLBACK_SITE_SETTINGS["hero_headline"]
        assert db.session.get(SiteSettings, 1) is not None


def test_public_data_falls_back_when_database_fails(app):
    with app.app_context():
        db.drop_all()
        payload = site_data.get_public_data()
        services_page = site_data.get_services_page()
    assert payload["settings"] == site_data.FALLBACK_SITE_SETTINGS
    assert payload["services"] == []
    assert payload["testimonials"] == []
    assert services_page["services"] == []
    assert services_page["settings"]["brand_name"] == "J-Digital Solutions"


def test_homepage_still_renders_without_tables(app, client):
    with app.app_context():
        db.drop_all()
    response = client.get("/")
    assert response.status_code == 200
    assert response.get_json()["portfolio"] == []


def test_admin_save_invalidates_cached_pages(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {"PUBLIC_CACHE_SECONDS": 300})
    client = app.test_client()
    admin_client = app.test_client()
    assert admin_login(admin_client).status_code == 200

    client.get("/")
    client.get("/services")
    client.get("/pricing")
    with app.app_context():
        cache = get_view_cache()
        assert "/" in cache and "/services" in cache and "/pricing" in cache

    response = admin_post(admin_client, "/admin/services", {
        "title": "Brand Identity",
        "slug": "brand-identity",
        "short_description": "Logos and brand systems for local businesses.",
        "description": "Full brand kits delivered with usage guidelines.",
        "is_active": True,
    })
    assert response.status_code == 200

    with app.app_context():
        cache = get_view_cache()
        assert "/" not in cache
        assert "/services" not in cache
        assert "/pricing" in cache

    services = client.get("/services").get_json()["services"]
    assert "brand-identity" in [service["slug"] for service in services]


def test_settings_save_refreshes_every_cached_page(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {"PUBLIC_CACHE_SECONDS": 300})
    client = app.test_client()
    admin_client = app.test_client()
    assert admin_login(admin_client).status_code == 200

    paths = ["/", "/services", "/portfolio", "/portfolio/metrobuild-prime", "/pricing", "/process", "/contact", "/about"]
    for path in paths:
        assert client.get(path).get_json()["settings"]["brand_name"] == "J-Digital Solutions", path

    payload = {
        "brand_name": "Renamed Brand",
        "hero_headline": "Websites that bring in local clients",
        "hero_subheadline": "Premium websites for Philippine businesses that want more inquiries.",
        "primary_cta_label": "Book a Call",
        "primary_cta_link": "/contact",
        "secondary_cta_label": "See Work",
        "secondary_cta_link": "/portfolio",
        "message_button_label": "Message Us",
        "seo_default_title": "Renamed Brand | Websites",
        "seo_default_description": "Conversion-focused websites for Philippine SMEs and local brands.",
        "highlight_package_slug": "startup",
    }
    response = admin_post(admin_client, "/admin/settings", payload)
    assert response.get_json() == {"success": "Site settings updated."}

    for path in paths:
        assert client.get(path).get_json()["settings"]["brand_name"] == "Renamed Brand", path


def test_public_pages_are_not_cached_in_process_by_default(app, client):
    response = client.get("/services")
    assert response.headers["Cache-Control"] == "public, max-age=120, s-maxage=300"
    assert "Cache-Control" not in client.get("/api/csrf-token").headers
    with app.app_context():
        assert "/services" not in get_view_cache()


def test_sitemap_and_robots(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {"APP_BASE_URL": "https://jdigital.ph"})
    client = app.test_client()

    sitemap = client.get("/sitemap.xml")
    assert sitemap.status_code == 200
    assert sitemap.mimetype == "application/xml"
    xml = sitemap.get_data(as_text=True)
    assert "<loc>https://jdigital.ph</loc>" in xml
    assert "<loc>https://jdigital.ph/pricing</loc>" in xml
    assert "<loc>https://jdigital.ph/portfolio/metrobuild-prime</loc>" in xml
    assert "/admin" not in xml

    robots = client.get("/robots.txt").get_data(as_text=True)
    assert "Disallow: /admin" in robots
    assert "Sitemap: https://jdigital.ph/sitemap.xml" in robots


def test_seed_admin_syncs_password_from_environment(app, monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "rotated-password-1")
    with app.app_context():
        seed_admin_user()
        admin = User.query.filter_by(email=ADMIN_EMAIL).one()
        assert admin.check_password("rotated-password-1")
        assert User.query.count() == 1


def test_sitemap_escapes_locations(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {"APP_BASE_URL": "https://jdigital.ph/a&b"})
    xml = app.test_client().get("/sitemap.xml").get_data(as_text=True)
    assert "<loc>https://jdigital.ph/a&amp;b/pricing</loc>" in xml
    assert "a&b" not in xml
