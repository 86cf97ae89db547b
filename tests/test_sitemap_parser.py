import gzip

import pytest

from sitemap_errors import DecodeError, MalformedXml, NoUrlsFound, SitemapIndexFound
from sitemap_models import PageRecord, SitemapResource
from sitemap_parser import decode_text, parse_resource, parse_sitemap
from tests.conftest import INDEX_XML, URLSET_XML


def test_parse_urlset_fields_and_order():
    records = parse_sitemap(URLSET_XML, "application/xml")
    assert [r.location for r in records] == [
        "https://example.com/",
        "https://example.com/blog/hello-world",
        "https://example.com/about",
    ]
    first = records[0]
    assert first.last_modified == "2024-05-01"
    assert first.change_frequency == "daily"
    # priority stays text
    assert first.priority == "1.0"
    assert records[1].last_modified == "2024-04-12T08:30:00+00:00"
    assert records[2].last_modified is None
    assert records[2].priority is None


def test_entries_without_loc_are_skipped():
    xml = b"""<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
      <url><loc>https://example.com/1</loc></url>
      <url><lastmod>2024-01-01</lastmod></url>
      <url><loc>https://example.com/2</loc></url>
      <url><loc>   </loc></url>
      <url><loc>https://example.com/3</loc></url>
    </urlset>"""
    records = parse_sitemap(xml, "text/xml")
    # 5 entries, 2 without a usable loc
    assert len(records) == 3
    assert [r.location for r in records] == [
        "https://example.com/1",
        "https://example.com/2",
        "https://example.com/3",
    ]


def test_duplicates_are_kept_in_document_order():
    xml = b"""<urlset>
      <url><loc>https://example.com/b</loc></url>
      <url><loc>https://example.com/a</loc></url>
      <url><loc>https://example.com/b</loc></url>
    </urlset>"""
    records = parse_sitemap(xml, "")
    assert [r.location for r in records] == [
        "https://example.com/b",
        "https://example.com/a",
        "https://example.com/b",
    ]


def test_first_occurrence_of_optional_fields_wins():
    xml = b"""<urlset>
      <url>
        <loc>https://example.com/x</loc>
        <lastmod>2024-01-01</lastmod>
        <lastmod>2025-01-01</lastmod>
        <priority>0.80</priority>
      </url>
    </urlset>"""
    (record,) = parse_sitemap(xml, "application/xml")
    assert record.last_modified == "2024-01-01"
    assert record.priority == "0.80"


def test_optional_fields_are_passed_through_verbatim():
    xml = b"""<urlset>
      <url>
        <loc>
          https://example.com/x
        </loc>
        <lastmod> 2024-01-01T10:00:00+00:00 </lastmod>
        <changefreq>Weekly </changefreq>
        <priority>   </priority>
      </url>
    </urlset>"""
    (record,) = parse_sitemap(xml, "application/xml")
    assert record.location == "https://example.com/x"
    assert record.last_modified == " 2024-01-01T10:00:00+00:00 "
    assert record.change_frequency == "Weekly "
    assert record.priority is None


def test_sitemap_index_lists_children():
    with pytest.raises(SitemapIndexFound) as exc_info:
        parse_sitemap(INDEX_XML, "application/xml")
    err = exc_info.value
    assert err.sitemaps == [
        "https://example.com/post-sitemap.xml",
        "https://example.com/page-sitemap.xml",
    ]
    lines = str(err).split("\n")
    assert lines[0] == "Multiple sitemaps found. Please use one of these URLs:"
    assert lines[1:] == err.sitemaps


def test_gzip_declared_content_parses_like_plain():
    plain = parse_sitemap(URLSET_XML, "application/xml")
    zipped = parse_sitemap(gzip.compress(URLSET_XML), "application/x-gzip")
    assert zipped == plain


def test_gz_url_with_generic_content_type_is_decompressed():
    resource = SitemapResource(
        url="https://example.com/sitemap.xml.gz",
        content=gzip.compress(URLSET_XML),
        content_type="application/octet-stream",
    )
    assert len(parse_resource(resource)) == 3


def test_corrupt_gzip_is_a_decode_error():
    with pytest.raises(DecodeError):
        parse_sitemap(b"\x1f\x8bnot really gzip", "application/gzip")


def test_invalid_utf8_is_a_decode_error():
    with pytest.raises(DecodeError):
        decode_text(b"<urlset>\xff\xfe</urlset>", "text/xml")


def test_bom_and_leading_whitespace_are_tolerated():
    records = parse_sitemap(b"\xef\xbb\xbf\n  " + URLSET_XML, "text/xml; charset=utf-8")
    assert len(records) == 3


def test_malformed_xml_reports_parser_message():
    with pytest.raises(MalformedXml) as exc_info:
        parse_sitemap(b"<urlset><url><loc>https://example.com</loc></urlset>", "text/xml")
    assert "mismatched tag" in str(exc_info.value)


@pytest.mark.parametrize("xml", [
    b"<html><body>Not a sitemap</body></html>",
    b"<urlset xmlns='http://www.sitemaps.org/schemas/sitemap/0.9'></urlset>",
    b"<sitemapindex><sitemap><lastmod>2024-01-01</lastmod></sitemap></sitemapindex>",
])
def test_other_shapes_have_no_urls(xml):
    with pytest.raises(NoUrlsFound) as exc_info:
        parse_sitemap(xml, "text/xml")
    assert str(exc_info.value) == "Invalid sitemap format: no URLs found"


def test_records_are_immutable():
    (record,) = parse_sitemap(b"<urlset><url><loc>https://example.com/x</loc></url></urlset>", "text/xml")
    assert isinstance(record, PageRecord)
    with pytest.raises(Exception):
        record.location = "https://example.com/y"
