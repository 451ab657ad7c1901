from horizon_scan.pipeline.extract_articles import JSON_LD_METADATA_KEY, extract_pending_articles
from horizon_scan.store import Article

HTML = """
<html><head>
<script type="application/ld+json">{"@type": "NewsArticle", "author": "Jane"}</script>
</head><body><article>Body</article><span class="loc">Boston</span></body></html>
"""


def test_extracts_text_and_merges_structured_metadata(store, make_feed, make_article):
    feed_id = make_feed(json_ld=True, metadata_selectors={"location": "span.loc"})
    article_id = make_article(feed_id, "a1", raw_html=HTML, metadata_={"prnIndustry": "Health"})

    assert extract_pending_articles(store) == 1

    with store.session_scope() as session:
        article = session.get(Article, article_id)
        assert article.extracted_text == "Body"
        assert article.metadata_["prnIndustry"] == "Health"
        assert article.metadata_[JSON_LD_METADATA_KEY] == [
            {"@type": "NewsArticle", "author": "Jane"},
            {"_source": "metadataSelector", "location": "Boston"},
        ]


def test_selector_miss_still_marks_article_extracted(store, make_feed, make_article):
    feed_id = make_feed(body_selector="section.body")
    article_id = make_article(feed_id, "a1", raw_html="<p>no match</p>")

    assert extract_pending_articles(store) == 1
    with store.session_scope() as session:
        article = session.get(Article, article_id)
        assert article.extracted_text == ""
        assert article.metadata_[JSON_LD_METADATA_KEY] == []


def test_only_unextracted_articles_with_html_are_processed(store, make_feed, make_article):
    feed_id = make_feed()
    make_article(feed_id, "no-html")
    make_article(feed_id, "done", raw_html="<article>x</article>", extracted_text="x")

    assert extract_pending_articles(store) == 0


def test_one_broken_article_does_not_stop_the_rest(store, make_feed, make_article):
    broken_feed = make_feed("Broken", body_selector="div[")
    good_feed = make_feed("Good")
    broken_id = make_article(broken_feed, "bad", raw_html="<div>x</div>")
    good_id = make_article(good_feed, "good", raw_html="<article>Body</article>")

    assert extract_pending_articles(store) == 1

    with store.session_scope() as session:
        assert session.get(Article, broken_id).extracted_text is None
        assert session.get(Article, good_id).extracted_text == "Body"
