import pytest

from linkscout.filter import (
    Excludes,
    Filter,
    Includes,
    Uri,
    is_example_domain,
    is_false_positive,
    is_unsupported_domain,
)

V4_PRIVATE_CLASS_A = "http://10.0.0.1"
V4_PRIVATE_CLASS_B = "http://172.16.0.1"
V4_PRIVATE_CLASS_C = "http://192.168.0.1"

V4_LOOPBACK = "http://127.0.0.1"
V6_LOOPBACK = "http://[::1]"

V4_LINK_LOCAL_1 = "http://169.254.0.1"
V4_LINK_LOCAL_2 = "http://169.254.10.1:8080"

V6_MAPPED_V4_PRIVATE_CLASS_A = "http://[::ffff:10.0.0.1]"
V6_MAPPED_V4_LINK_LOCAL = "http://[::ffff:169.254.0.1]"


def website(url):
    return Uri.parse(url)


def mail(address):
    return Uri.mail(address)


def test_const_sanity():
    assert website(V4_PRIVATE_CLASS_A).is_private
    assert website(V4_PRIVATE_CLASS_B).is_private
    assert website(V4_PRIVATE_CLASS_C).is_private
    assert website(V4_LOOPBACK).is_loopback
    assert website(V6_LOOPBACK).is_loopback
    assert website(V4_LINK_LOCAL_1).is_link_local
    assert website(V4_LINK_LOCAL_2).is_link_local


def test_exclude_loopback_ips():
    filter_ = Filter(exclude_loopback_ips=True, check_example_domains=True)
    assert filter_.is_excluded(Uri.parse("https://[::1]"))
    assert filter_.is_excluded(Uri.parse("https://127.0.0.1/8"))


def test_includes_and_excludes_empty():
    filter_ = Filter(check_example_domains=True)
    assert not filter_.is_excluded(website("https://example.com"))


def test_false_positives():
    filter_ = Filter(check_example_domains=True)
    assert filter_.is_excluded(website("http://www.w3.org/1999/xhtml"))
    assert filter_.is_excluded(
        website("http://schemas.openxmlformats.org/markup-compatibility/2006")
    )
    assert not filter_.is_excluded(website("https://example.com"))


def test_overwrite_false_positives():
    filter_ = Filter(
        includes=Includes([r"http://www.w3.org/1999/xhtml"]), check_example_domains=True
    )
    assert not filter_.is_excluded(website("http://www.w3.org/1999/xhtml"))


def test_include_regex():
    filter_ = Filter(includes=Includes([r"foo.example.com"]), check_example_domains=True)
    assert not filter_.is_excluded(website("https://foo.example.com"))
    assert filter_.is_excluded(website("https://bar.example.com"))
    assert filter_.is_excluded(website("https://example.com"))


def test_exclude_mail_by_default():
    filter_ = Filter(check_example_domains=True)
    assert filter_.is_excluded(mail("mail@example.com"))
    assert filter_.is_excluded(mail("foo@example.com"))
    assert not filter_.is_excluded(website("http://bar.dev"))


def test_include_mail():
    filter_ = Filter(include_mail=True, check_example_domains=True)
    assert not filter_.is_excluded(mail("mail@example.com"))
    assert not filter_.is_excluded(mail("foo@example.com"))
    assert not filter_.is_excluded(website("http://bar.dev"))


def test_exclude_regex():
    excludes = Excludes([r"github.com", r"[a-z]+\.(org|net)", r"@example.com"])
    filter_ = Filter(excludes=excludes, check_example_domains=True)
    assert filter_.is_excluded(website("https://github.com"))
    assert filter_.is_excluded(website("http://exclude.org"))
    assert filter_.is_excluded(mail("mail@example.com"))
    assert not filter_.is_excluded(website("http://bar.dev"))
    assert filter_.is_excluded(mail("foo@example.com"))


def test_exclude_include_regex():
    filter_ = Filter(
        includes=Includes([r"foo.example.com"]),
        excludes=Excludes([r"example.com"]),
        check_example_domains=True,
    )
    assert not filter_.is_excluded(website("https://foo.example.com"))
    assert filter_.is_excluded(website("https://example.com"))
    assert filter_.is_excluded(website("https://bar.example.com"))


def test_excludes_no_private_ips_by_default():
    filter_ = Filter(check_example_domains=True)
    for url in (
        V4_PRIVATE_CLASS_A,
        V4_PRIVATE_CLASS_B,
        V4_PRIVATE_CLASS_C,
        V4_LINK_LOCAL_1,
        V4_LINK_LOCAL_2,
        V4_LOOPBACK,
        V6_LOOPBACK,
        "http://localhost",
    ):
        assert not filter_.is_excluded(website(url)), url


def test_exclude_private_ips():
    filter_ = Filter(exclude_private_ips=True, check_example_domains=True)
    assert filter_.is_excluded(website(V4_PRIVATE_CLASS_A))
    assert filter_.is_excluded(website(V4_PRIVATE_CLASS_B))
    assert filter_.is_excluded(website(V4_PRIVATE_CLASS_C))


def test_exclude_link_local():
    filter_ = Filter(exclude_link_local_ips=True, check_example_domains=True)
    assert filter_.is_excluded(website(V4_LINK_LOCAL_1))
    assert filter_.is_excluded(website(V4_LINK_LOCAL_2))


def test_exclude_loopback():
    filter_ = Filter(exclude_loopback_ips=True, check_example_domains=True)
    assert filter_.is_excluded(website(V4_LOOPBACK))
    assert filter_.is_excluded(website(V6_LOOPBACK))
    assert filter_.is_excluded(website("http://localhost"))


def test_exclude_ip_v4_mapped_ip_v6_not_supported():
    filter_ = Filter(
        exclude_private_ips=True, exclude_link_local_ips=True, check_example_domains=True
    )
    assert not filter_.is_excluded(website(V6_MAPPED_V4_PRIVATE_CLASS_A))
    assert not filter_.is_excluded(website(V6_MAPPED_V4_LINK_LOCAL))


def test_example_domains_excluded_by_default():
    filter_ = Filter()
    assert filter_.is_excluded(website("https://example.com"))
    assert filter_.is_excluded(website("https://foo.example.org/page"))
    assert filter_.is_excluded(website("https://site.test"))
    assert not filter_.is_excluded(website("https://bar.dev"))


def test_is_example_domain():
    assert is_example_domain(website("https://example.net"))
    assert is_example_domain(website("https://sub.example.edu"))
    assert is_example_domain(website("http://my.localhost"))
    assert is_example_domain(mail("user@example.com"))
    assert not is_example_domain(website("https://notexample.dev"))
    assert not is_example_domain(website(V4_LOOPBACK))


def test_is_unsupported_domain():
    assert is_unsupported_domain(website("https://twitter.com/someone"))
    assert is_unsupported_domain(website("https://mobile.twitter.com"))
    assert not is_unsupported_domain(website("https://bar.dev"))
    assert Filter(check_example_domains=True).is_excluded(website("https://twitter.com"))


def test_is_false_positive():
    assert is_false_positive("https://ogp.me/ns#")
    assert is_false_positive("https://blog.dev/xmlrpc.php")
    assert not is_false_positive("https://blog.dev/xmlrpc.php?x=1")
    assert not is_false_positive("https://bar.dev")


def test_scheme_excluded():
    filter_ = Filter(schemes={"https"}, check_example_domains=True)
    assert filter_.is_excluded(website("http://bar.dev"))
    assert not filter_.is_excluded(website("https://bar.dev"))


def test_tel_excluded():
    filter_ = Filter(check_example_domains=True)
    assert filter_.is_excluded(Uri.parse("tel:1234"))


def test_regex_sets_empty():
    assert Excludes([]).is_empty()
    assert not Includes(["x"]).is_empty()
    assert Includes(["bar"]).is_match("foobarbaz")
    assert not Excludes(["^bar"]).is_match("foobar")


def test_empty_sets_behave_as_absent():
    filter_ = Filter(includes=Includes([]), excludes=Excludes([]), check_example_domains=True)
    assert not filter_.is_excluded(website("https://bar.dev"))


def test_uri_normalisation():
    uri = Uri.parse("HTTPS://Example.COM")
    assert uri.url == "https://example.com/"
    assert uri.scheme == "https"
    assert uri.domain == "example.com"
    assert Uri.parse("https://bar.dev:443/x").url == "https://bar.dev/x"


def test_uri_mail():
    uri = Uri.parse("mailto:user@example.com?subject=Hello")
    assert uri.is_mail
    assert uri.path == "user@example.com"
    assert uri.domain is None
    assert Uri.parse("user@example.com") == Uri.mail("user@example.com")
    assert str(Uri.mail("user@example.com")) == "mailto:user@example.com"


def test_uri_ip_has_no_domain():
    assert website(V4_LOOPBACK).domain is None
    assert website("http://localhost").domain == "localhost"


@pytest.mark.parametrize("text", ["no scheme here", "http://", "http://bar.dev:99999"])
def test_uri_invalid(text):
    with pytest.raises(ValueError):
        Uri.parse(text)