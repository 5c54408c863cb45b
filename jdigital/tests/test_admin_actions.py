import csv
import io

from jdigital.actions import admin as admin_actions
from jdigital.models import Lead, MediaAsset, PortfolioProject, PricingPackage, Service, User, db

from .conftest import ADMIN_EMAIL, ADMIN_PASSWORD, admin_login, admin_post, build_test_app, fetch_csrf_token

PRICING = {
    "name": "Growth",
    "slug": "growth",
    "price": 19999,
    "delivery": "7-10 Days",
    "includes": "Up to 6 Pages\nLead Capture Forms",
    "freebies": "Free Logo",
    "position": 9,
}


def test_admin_routes_require_login(client):
    response = client.get("/admin/services", headers={"Accept": "application/json"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthorized"}

    redirected = client.get("/admin/", headers={"Accept": "text/html"})
    assert redirected.status_code == 302
    assert redirected.headers["Location"].endswith("/admin/login")

    token = fetch_csrf_token(client)
    blocked = client.post("/admin/services", json={"title": "X"}, headers={"X-CSRF-Token": token})
    assert blocked.status_code == 401


def test_admin_login_rejects_bad_password_and_limits_attempts(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {"ADMIN_LOGIN_LIMIT": 2})
    client = app.test_client()

    first = admin_login(client, password="wrong-password")
    assert first.status_code == 401
    assert "1 attempt(s) remaining" in first.get_json()["error"]
    assert admin_login(client, password="wrong-password").status_code == 401

    locked = admin_login(client)
    assert locked.status_code == 429
    assert "Retry-After" in locked.headers


def test_admin_login_and_dashboard(admin_client):
    response = admin_client.get("/admin/")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["user"]["email"] == ADMIN_EMAIL
    assert payload["counts"]["services"] == 5
    assert payload["recent_leads"] == []
    assert response.headers["X-Robots-Tag"] == "noindex, nofollow, noarchive"
    assert "no-store" in response.headers["Cache-Control"]


def test_save_service_creates_and_updates(admin_client, app):
    response = admin_post(admin_client, "/admin/services", {
        "title": "Brand Identity",
        "slug": "Brand Identity!!",
        "short_description": "Logos and brand systems for local businesses.",
        "description": "<p>Full brand kits.<script>alert(1)</script> Delivered with guidelines.</p>",
        "position": 6,
        "is_active": True,
    })
    assert response.status_code == 200
    assert response.get_json() == {"success": "Service saved."}

    with app.app_context():
        service = Service.query.filter_by(slug="brand-identity").one()
        service_id = service.id
        assert "<script>" not in service.description

    update = admin_post(admin_client, "/admin/services", {
        "id": service_id,
        "title": "Brand Identity Kits",
        "slug": "brand-identity",
        "short_description": "Logos and brand systems for local businesses.",
        "description": "Full brand kits delivered with usage guidelines.",
        "position": 6,
    })
    assert update.status_code == 200
    with app.app_context():
        service = db.session.get(Service, service_id)
        assert service.title == "Brand Identity Kits"
        assert service.is_active is False


def test_numeric_json_title_returns_validation_error(admin_client):
    response = admin_post(admin_client, "/admin/services", {
        "title": 12,
        "slug": "numeric-title",
        "short_description": "Logos and brand systems for local businesses.",
        "description": "Full brand kits delivered with usage guidelines.",
        "position": 4,
        "is_active": False,
    })
    assert response.status_code == 400
    assert response.get_json()["error"].startswith("Title: ")


def test_duplicate_service_slug_reports_conflict(admin_client):
    response = admin_post(admin_client, "/admin/services", {
        "title": "Another Website Service",
        "slug": "website-design-development",
        "short_description": "Duplicate slug should be refused.",
        "description": "This service reuses an existing slug on purpose.",
    })
    assert response.status_code == 400
    assert response.get_json() == {"error": "Unable to save service. Slug may already exist."}


def test_delete_missing_item_reports_not_found(admin_client):
    response = admin_post(admin_client, "/admin/faqs/delete", {"id": 9999})
    assert response.status_code == 400
    assert response.get_json() == {"error": "FAQ not found."}

    missing_id = admin_post(admin_client, "/admin/faqs/delete", {})
    assert missing_id.get_json() == {"error": "Missing FAQ ID."}


def test_only_one_pricing_package_is_popular(admin_client, app):
    response = admin_post(admin_client, "/admin/pricing", dict(PRICING, is_popular=True))
    assert response.status_code == 200

    with app.app_context():
        popular = PricingPackage.query.filter_by(is_popular=True).all()
        assert [package.slug for package in popular] == ["growth"]
        growth = PricingPackage.query.filter_by(slug="growth").one()
        assert growth.includes == ["Up to 6 Pages", "Lead Capture Forms"]
        startup_id = PricingPackage.query.filter_by(slug="startup").one().id

    admin_post(admin_client, "/admin/pricing", {
        "id": startup_id,
        "name": "Startup",
        "slug": "startup",
        "price": 14999,
        "delivery": "7-10 Days",
        "includes": "Up to 5-7 Pages",
        "freebies": "Free Logo",
        "is_popular": True,
    })
    with app.app_context():
        popular = PricingPackage.query.filter_by(is_popular=True).all()
        assert [package.slug for package in popular] == ["startup"]


def test_portfolio_defaults_and_gallery_replacement(admin_client, app):
    response = admin_post(admin_client, "/admin/portfolio", {
        "title": "Harbor Cafe",
        "industry": "Restaurant & Cafe",
        "cover_image": "/placeholders/project-1.svg",
        "status": "DEMO",
        "gallery_images": "/img/a.png\n/img/b.png",
    })
    assert response.status_code == 200

    with app.app_context():
        project = PortfolioProject.query.filter_by(slug="harbor-cafe").one()
        project_id = project.id
        assert project.short_summary == "Homepage preview of Harbor Cafe for Restaurant & Cafe."
        assert project.tags == ["Restaurant & Cafe", "Website Homepage"]
        assert project.services_provided == ["Website Design"]
        assert [(image.url, image.position) for image in project.images] == [("/img/a.png", 1), ("/img/b.png", 2)]

    base = {
        "id": project_id,
        "title": "Harbor Cafe",
        "industry": "Restaurant & Cafe",
        "cover_image": "/placeholders/project-1.svg",
        "status": "CLIENT",
    }
    admin_post(admin_client, "/admin/portfolio", base)
    with app.app_context():
        project = db.session.get(PortfolioProject, project_id)
        assert project.status == "CLIENT"
        assert len(project.images) == 2

    admin_post(admin_client, "/admin/portfolio", dict(base, gallery_images="/img/c.png"))
    with app.app_context():
        project = db.session.get(PortfolioProject, project_id)
        assert [(image.url, image.position) for image in project.images] == [("/img/c.png", 1)]


def test_lead_status_update_and_validation(admin_client, app):
    with app.app_context():
        lead = Lead(
            full_name="Maria Santos",
            email="maria@example.com",
            mobile_number="09171234567",
            business_name="Santos Bakery",
            industry="Food",
            package_interest="Startup",
            budget_range="PHP 10,000 - 20,000",
            preferred_contact_method="Email",
            message_goals="Catering orders.",
        )
        db.session.add(lead)
        db.session.commit()
        lead_id = lead.id

    missing = admin_post(admin_client, "/admin/leads/status", {"id": lead_id})
    assert missing.get_json() == {"error": "Missing lead ID or status."}

    response = admin_post(admin_client, "/admin/leads/status", {"id": lead_id, "status": "QUALIFIED"})
    assert response.get_json() == {"success": "Lead status updated."}
    with app.app_context():
        assert db.session.get(Lead, lead_id).status == "QUALIFIED"

    invalid = admin_post(admin_client, "/admin/leads/status", {"id": lead_id, "status": "ARCHIVED"})
    assert invalid.status_code == 400


def test_upload_media_requires_file_then_storage_config(admin_client):
    response = admin_post(admin_client, "/admin/media", {}, as_form=True)
    assert response.get_json() == {"error": "Please choose a file."}

    upload = admin_post(
        admin_client,
        "/admin/media",
        {"file": (io.BytesIO(b"%PDF-1.4 test"), "brief.pdf", "application/pdf")},
        as_form=True,
    )
    error = upload.get_json()["error"]
    assert error.startswith("Missing env vars: SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_STORAGE_BUCKET.")


def test_upload_media_stores_object_and_record(tmp_path, monkeypatch):
    app = build_test_app(tmp_path, monkeypatch, {
        "SUPABASE_URL": "https://project.supabase.co",
        "SUPABASE_SERVICE_ROLE_KEY": "service-key",
        "SUPABASE_STORAGE_BUCKET": "media",
    })
    client = app.test_client()
    assert admin_login(client).status_code == 200

    uploaded = []

    def fake_upload(bucket, path, data, content_type=None):
        uploaded.append((bucket, path, data, content_type))
        return f"https://project.supabase.co/storage/v1/object/public/{bucket}/{path}"

    monkeypatch.setattr(admin_actions, "upload_object", fake_upload)

    response = admin_post(
        client,
        "/admin/media",
        {"file": (io.BytesIO(b"%PDF-1.4 brief"), "Client Brief.pdf", "application/pdf")},
        as_form=True,
    )
    payload = response.get_json()
    assert payload["success"] == "File uploaded."
    bucket, path, data, content_type = uploaded[0]
    assert bucket == "media"
    assert path.startswith("uploads/") and path.endswith("-client-brief.pdf")
    assert content_type == "application/pdf"

    with app.app_context():
        asset = MediaAsset.query.one()
        assert asset.url == payload["url"]
        assert asset.size == len(b"%PDF-1.4 brief")


def test_change_password(admin_client, app):
    wrong = admin_post(admin_client, "/admin/password", {
        "current_password": "not-the-password",
        "new_password": "fresh-password-1",
        "confirm_password": "fresh-password-1",
    })
    assert wrong.get_json() == {"error": "Current password is incorrect."}

    mismatch = admin_post(admin_client, "/admin/password", {
        "current_password": ADMIN_PASSWORD,
        "new_password": "fresh-password-1",
        "confirm_password": "fresh-password-2",
    })
    assert mismatch.get_json()["error"].endswith("Passwords do not match")

    ok = admin_post(admin_client, "/admin/password", {
        "current_password": ADMIN_PASSWORD,
        "new_password": "fresh-password-1",
        "confirm_password": "fresh-password-1",
    })
    assert ok.get_json() == {"success": "Password updated."}
    with app.app_context():
        assert User.query.filter_by(email=ADMIN_EMAIL).one().check_password("fresh-password-1")


def test_admin_user_management(admin_client, app):
    weak = admin_post(admin_client, "/admin/users", {"email": "ops@jdigital.local", "password": "short"})
    assert weak.get_json() == {"error": "Password: Email and a strong password are required."}

    created = admin_post(admin_client, "/admin/users", {"email": "Ops@JDigital.local", "password": "ops-password-123"})
    assert created.get_json() == {"success": "Admin user created."}

    duplicate = admin_post(admin_client, "/admin/users", {"email": "ops@jdigital.local", "password": "ops-password-123"})
    assert duplicate.get_json() == {"error": "Unable to create user. Email may already exist."}

    with app.app_context():
        ops = User.query.filter_by(email="ops@jdigital.local").one()
        assert ops.name == "Admin"
        ops_id = ops.id
        admin_id = User.query.filter_by(email=ADMIN_EMAIL).one().id

    own = admin_post(admin_client, "/admin/users/delete", {"id": admin_id})
    assert own.get_json() == {"error": "You cannot delete your own account."}

    removed = admin_post(admin_client, "/admin/users/delete", {"id": ops_id})
    assert removed.get_json() == {"success": "Admin user deleted."}

    listing = admin_client.get("/admin/users").get_json()
    assert [user["email"] for user in listing["users"]] == [ADMIN_EMAIL]


def test_leads_export_csv(admin_client, app):
    with app.app_context():
        db.session.add(Lead(
            full_name='Ana "AJ" Reyes',
            email="ana@example.com",
            mobile_number="09170000000",
            business_name="Reyes, Co.",
            industry="Retail",
            package_interest="Basic",
            budget_range="PHP 10,000 - 20,000",
            preferred_contact_method="Viber",
            message_goals="Line one\nLine two",
        ))
        db.session.commit()

    response = admin_client.get("/admin/leads/export")
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/csv; charset=utf-8"
    assert "jdigital-leads-" in response.headers["Content-Disposition"]


    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0][:4] == ["Date", "Type", "Name", "Email"]
    assert rows[1][2] == 'Ana "AJ" Reyes'
    assert rows[1][5] == "Reyes, Co."
    assert rows[1][6] == ""
    assert rows[1][13] == "Line one\nLine two"


def test_leads_listing_search_and_filter(admin_client, app):
    with app.app_context():
        for index, status in enumerate(["NEW", "CONTACTED", "NEW"]):
            db.session.add(Lead(
                full_name=f"Client {index}",
                email=f"client{index}@example.com",
                mobile_number="09170000000",
                business_name="100% Organic" if index == 0 else f"Shop {index}",
                industry="Retail",
                package_interest="Basic",
                budget_range="PHP 10,000 - 20,000",
                preferred_contact_method="Email",
                message_goals="Hello",
                status=status,
            ))
        db.session.commit()

    everything = admin_client.get("/admin/leads").get_json()
    assert everything["total"] == 3

    new_only = admin_client.get("/admin/leads?status=new").get_json()
    assert new_only["total"] == 2

    searched = admin_client.get("/admin/leads?q=100%25").get_json()
    assert [lead["business_name"] for lead in searched["leads"]] == ["100% Organic"]


def test_save_site_settings_upserts_singleton(admin_client, app):
    payload = {
        "brand_name": "J-Digital Solutions",
        "hero_headline": "Websites that bring in local clients",
        "hero_subheadline": "Premium websites for Philippine businesses that want more inquiries.",
        "primary_cta_label": "Book a Call",
        "primary_cta_link": "/contact",
        "secondary_cta_label": "See Work",
        "secondary_cta_link": "/portfolio",
        "phone": "  ",
        "message_button_label": "Message Us",
        "facebook_url": "https://www.facebook.com/jdigitalsolutions",
        "seo_default_title": "J-Digital Solutions | Websites",
        "seo_default_description": "Conversion-focused websites for Philippine SMEs and local brands.",
        "highlight_package_slug": "basic",
        "testimonials_enabled": True,
    }
    response = admin_post(admin_client, "/admin/settings", payload)
    assert response.get_json() == {"success": "Site settings updated."}

    settings = admin_client.get("/admin/settings").get_json()["settings"]
    assert settings["id"] == 1
    assert settings["primary_cta_label"] == "Book a Call"
    assert settings["phone"] is None
    assert settings["testimonials_enabled"] is True

    about = admin_client.get("/about").get_json()
    assert len(about["testimonials"]) == 3

    invalid = admin_post(admin_client, "/admin/settings", dict(payload, facebook_url="not a url"))
    assert invalid.get_json() == {"error": "Facebook URL: Invalid url."}
