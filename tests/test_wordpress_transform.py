# tests/test_wordpress_transform.py
from datetime import datetime, timezone

from nexjob.wordpress.lib.transform import article_from_wp, filter_data_from_wp, job_from_wp, rendered


def test_rendered_unwraps_and_strips():
    assert rendered({"rendered": "<b>Kerja &amp; Karir</b>"}) == "Kerja & Karir"
    assert rendered({"rendered": "<p>x</p>"}, as_html=True) == "<p>x</p>"
    assert rendered(None) == ""


def test_job_fields_from_top_level_meta_and_acf():
    raw = {
        "id": 42,
        "slug": "backend-engineer",
        "title": {"rendered": "Backend Engineer"},
        "content": {"rendered": "<p>Build APIs</p>"},
        "date_gmt": "2025-01-02T03:04:05",
        "company_name": "PT Maju",
        "meta": {
            "nexjob_lokasi_kota": ["Jakarta Selatan"],
            "nexjob_lokasi_provinsi": "DKI Jakarta",
            "nexjob_tag": "Python, Django , ",
        },
        "acf": {"nexjob_gaji": "Rp 10-15 jt", "link_lamaran": "https://apply.example/42"},
        "yoast_head_json": {"title": "Backend Engineer | Nexjob", "description": "Lowongan backend"},
    }
    job = job_from_wp(raw)

    assert job.id == "42"
    assert job.company_name == "PT Maju"
    assert job.city == "Jakarta Selatan"
    assert job.location == "Jakarta Selatan, DKI Jakarta"
    assert job.tags == ("Python", "Django")
    assert job.salary == "Rp 10-15 jt"
    assert job.link == "https://apply.example/42"
    assert job.content == "<p>Build APIs</p>"
    assert job.created_at == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert job.seo_title == "Backend Engineer | Nexjob"


def test_job_tolerates_sparse_payload():
    job = job_from_wp({"id": 1})
    assert job.title == ""
    assert job.created_at is None
    assert job.tags == ()
    assert job.location == ""


def test_article_author_and_featured_image():
    raw = {
        "id": 9,
        "slug": "cv",
        "title": {"rendered": "CV"},
        "date": "2025-01-05T10:00:00",
        "author_info": {"display_name": "Rina", "slug": "rina", "avatar": "https://img/a.png"},
        "categories_info": [{"name": "Karir"}],
        "_embedded": {"wp:featuredmedia": [{"source_url": "https://img/f.jpg"}]},
    }
    art = article_from_wp(raw)
    assert art.author.name == "Rina"
    assert art.categories == ("Karir",)
    assert art.featured_image == "https://img/f.jpg"


def test_filter_data_accepts_list_of_provinces():
    data = filter_data_from_wp({
        "nexjob_lokasi_provinsi": [
            {"name": "Jawa Barat", "cities": ["Bandung", "Bekasi"]},
            "Bali",
        ],
        "nexjob_pendidikan": "SMA, S1",
    })
    assert data.province_options() == ["Jawa Barat", "Bali"]
    assert data.cities_for("Jawa Barat") == ["Bandung", "Bekasi"]
    assert data.cities_for("Bali") == []
    assert data.values_for("educations") == ["SMA", "S1"]
    assert data.values_for("cities") == ["Bandung", "Bekasi"]
