from linkscout.plaintext import RawUri, extract_raw_uri_from_plaintext, find_links


def test_extract_local_links():
    text = "http://127.0.0.1/ and http://127.0.0.1:8888/ are local links."
    assert extract_raw_uri_from_plaintext(text) == [
        RawUri("http://127.0.0.1/"),
        RawUri("http://127.0.0.1:8888/"),
    ]


def test_extract_link_at_end_of_line():
    text = "https://www.apache.org/licenses/LICENSE-2.0\n"
    assert extract_raw_uri_from_plaintext(text) == [RawUri(text.rstrip())]


def test_urls_and_email_in_order():
    text = "https://endler.dev and https://hello-rust.show/foo/bar?lol=1 at test@example.com"
    assert list(find_links(text)) == [
        "https://endler.dev",
        "https://hello-rust.show/foo/bar?lol=1",
        "test@example.com",
    ]


def test_urls_with_at_sign_are_not_emails():
    text = "https://example.com/@test/test http://otherdomain.com/test/@test"
    assert list(find_links(text)) == [
        "https://example.com/@test/test",
        "http://otherdomain.com/test/@test",
    ]


def test_mailto_with_query_yields_address():
    text = "This is a mailto:user@example.com?subject=Hello link"
    assert list(find_links(text)) == ["user@example.com"]


def test_trailing_punctuation_is_trimmed():
    assert list(find_links("See https://example.com/page.")) == [
        "https://example.com/page"
    ]


def test_unbalanced_paren_ends_link():
    assert list(find_links("(see https://example.com/a)")) == ["https://example.com/a"]


def test_balanced_parens_are_kept():
    assert list(find_links("https://en.wikipedia.org/wiki/Foo_(bar) here")) == [
        "https://en.wikipedia.org/wiki/Foo_(bar)"
    ]


def test_underscore_at_end_is_kept():
    assert list(find_links("https://example.com/_")) == ["https://example.com/_"]


def test_no_links():
    assert extract_raw_uri_from_plaintext("nothing to see here") == []


def test_raw_uri_defaults():
    uri = RawUri("https://example.com")
    assert (uri.element, uri.attribute, str(uri)) == (None, None, "https://example.com")