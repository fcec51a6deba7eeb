# tests/core/test_html_document.py
from sri_injector.dom import ElementKind, HtmlDocument
from sri_injector.dom.document import scan_start_tag

PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset='utf-8'>
    <link rel="icon" href="/favicon.ico">
    <link rel=stylesheet href=assets/style.css>
    <script>window.inline = true;</script>
    <script type="module" crossorigin src="/main.js"></script>
  </head>
  <body><img src="logo.png"><p>&copy; 2024 &amp; friends</p></body>
</html>
"""


def _set_all(document, value="sha256-abc"):
    for element in document.candidates():
        element.set_attribute("integrity", value)


def test_candidates_are_scripts_with_src_and_links_with_href():
    document = HtmlDocument.parse(PAGE)
    found = [(c.kind, c.reference) for c in document.candidates()]
    assert found == [
        (ElementKind.LINK, "/favicon.ico"),
        (ElementKind.LINK, "assets/style.css"),
        (ElementKind.SCRIPT, "/main.js"),
    ]


def test_rel_is_read_as_raw_string():
    document = HtmlDocument.parse('<link rel="preload stylesheet" href="a.css">')
    assert document.candidates()[0].rel == "preload stylesheet"


def test_empty_reference_is_not_a_candidate():
    assert HtmlDocument.parse('<script src=""></script><link href="  ">').candidates() == []


def test_serialize_without_edits_is_identity():
    document = HtmlDocument.parse(PAGE)
    assert document.serialize() == PAGE
    assert not document.is_modified


def test_attribute_is_inserted_and_everything_else_preserved():
    html = '<script src="main.js"></script>'
    document = HtmlDocument.parse(html)
    _set_all(document)
    assert document.serialize() == '<script src="main.js" integrity="sha256-abc"></script>'


def test_all_edits_land_in_the_right_tags():
    document = HtmlDocument.parse(PAGE)
    _set_all(document)
    expected = (
        PAGE
        .replace('href="/favicon.ico">', 'href="/favicon.ico" integrity="sha256-abc">')
        .replace('href=assets/style.css>', 'href=assets/style.css integrity="sha256-abc">')
        .replace('src="/main.js">', 'src="/main.js" integrity="sha256-abc">')
    )
    assert document.serialize() == expected


def test_self_closing_tag_keeps_its_slash():
    document = HtmlDocument.parse('<link rel="stylesheet" href="a.css" />')
    _set_all(document)
    assert document.serialize() == '<link rel="stylesheet" href="a.css" integrity="sha256-abc" />'


def test_existing_integrity_value_is_replaced_in_place():
    html = "<script integrity='sha256-old' src=\"a.js\" defer></script>"
    document = HtmlDocument.parse(html)
    assert document.candidates()[0].integrity == "sha256-old"
    _set_all(document, "sha384-new")
    assert document.serialize() == '<script integrity="sha384-new" src="a.js" defer></script>'


def test_bare_integrity_attribute_gains_a_value():
    document = HtmlDocument.parse('<script integrity src="a.js"></script>')
    _set_all(document)
    assert document.serialize() == '<script integrity="sha256-abc" src="a.js"></script>'


def test_multiline_tag_with_gt_inside_quoted_value():
    html = '<div>\r\n<script\r\n  data-cond="a > b"\r\n  src="a.js"\r\n></script>\r\n</div>'
    document = HtmlDocument.parse(html)
    _set_all(document)
    assert document.serialize() == html.replace('src="a.js"', 'src="a.js" integrity="sha256-abc"')


def test_uppercase_tags_and_attributes():
    document = HtmlDocument.parse('<SCRIPT SRC="A.js"></SCRIPT>')
    candidates = document.candidates()
    assert candidates[0].kind == ElementKind.SCRIPT
    _set_all(document)
    assert document.serialize() == '<SCRIPT SRC="A.js" integrity="sha256-abc"></SCRIPT>'


def test_tags_inside_comments_and_inline_scripts_are_ignored():
    html = (
        '<!-- <script src="old.js"></script> -->'
        '<script>document.write(\'<script src="x.js"><\\/script>\');</script>'
        '<script src="real.js"></script>'
    )
    document = HtmlDocument.parse(html)
    assert [c.reference for c in document.candidates()] == ["real.js"]
    _set_all(document)
    assert document.serialize() == html.replace(
        '<script src="real.js">', '<script src="real.js" integrity="sha256-abc">'
    )


def test_duplicate_attribute_keeps_first_value():
    html = '<script src="a.js" src="b.js"></script>'
    document = HtmlDocument.parse(html)
    assert [c.reference for c in document.candidates()] == ["a.js"]
    _set_all(document)
    assert document.serialize() == '<script src="a.js" src="b.js" integrity="sha256-abc"></script>'


def test_markup_inside_title_and_textarea_is_not_a_candidate():
    html = (
        '<title><script src="t.js"></script></title>'
        '<textarea><script src="t.js"></script><link rel="stylesheet" href="t.css"></textarea>'
        '<script src="real.js"></script>'
    )
    document = HtmlDocument.parse(html)
    assert [c.reference for c in document.candidates()] == ["real.js"]
    _set_all(document)
    assert document.serialize() == html.replace(
        '<script src="real.js">', '<script src="real.js" integrity="sha256-abc">'
    )


def test_malformed_markup_is_tolerated():
    html = '<div><p>unclosed <b>bold<script src="a.js"></div><link href="x.css" rel=stylesheet'
    document = HtmlDocument.parse(html)
    assert [c.reference for c in document.candidates()][0] == "a.js"
    _set_all(document)
    assert '<script src="a.js" integrity="sha256-abc">' in document.serialize()


def test_scan_start_tag_reports_attribute_spans():
    text = '<link rel="stylesheet" href=a.css crossorigin>rest'
    end, attrs = scan_start_tag(text, 0)
    assert text[end:] == "rest"
    names = [name for name, _, _ in attrs]
    assert names == ["rel", "href", "crossorigin"]
    _, _, href_value = attrs[1]
    assert text[href_value[0]:href_value[1]] == "a.css"
    assert attrs[2][2] is None
