from datetime import datetime

from horizon_scan.core.types import DigestArticle, DigestData, DigestTopicGroup
from horizon_scan.digest.renderer import digest_subject, render_digest_html


def _data(*articles: DigestArticle) -> DigestData:
    return DigestData(
        topic_groups=[DigestTopicGroup(topic_name="AI & ML", articles=list(articles))],
        total_article_count=len(articles),
    )


def test_render_outputs_grouped_articles_with_inline_styles():
    article = DigestArticle(
        title="New model released",
        url="https://news.example.com/model",
        published_at=datetime(2024, 3, 5, 9, 0),
        summary="A summary.",
        tags=["OpenAI", "GPT"],
    )
    html = render_digest_html(_data(article), generated_at=datetime(2024, 3, 6, 8, 0))

    assert html.startswith("<!DOCTYPE html>")
    assert "<html>" in html
    assert "<style" not in html
    assert "<h2" in html and "AI &amp; ML" in html
    assert '<a href="https://news.example.com/model"' in html
    assert "New model released" in html
    assert "2024-03-05" in html
    assert "A summary." in html
    assert "OpenAI, GPT" in html
    assert "1 article " in html
    assert "2024-03-06 08:00 UTC" in html


def test_render_untitled_fallback_and_escaping():
    article = DigestArticle(
        title=None,
        url="https://news.example.com/x",
        published_at=None,
        summary="<script>alert(1)</script>",
        tags=[],
    )
    second = DigestArticle(title="Other", url="https://news.example.com/y", published_at=None, summary="", tags=[])
    html = render_digest_html(_data(article, second))

    assert "Untitled" in html
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "2 articles" in html
    assert "Tags:" not in html


def test_digest_subject_pluralizes():
    sent = datetime(2024, 3, 6)
    assert digest_subject(DigestData(total_article_count=1), sent) == "Horizon Scan: 1 article - 2024-03-06"
    assert digest_subject(DigestData(total_article_count=3), sent) == "Horizon Scan: 3 articles - 2024-03-06"
