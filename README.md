# linkscout

linkscout finds links in documents and decides which of them are worth
checking. It reads HTML, Markdown and plain text. For every link it finds, it
returns a `RawUri` with the link text and the element and attribute the link
came from. It also collects the fragment identifiers a page defines, so that
`#anchor` links can be checked against them.

## Installation

```
pip install linkscout
```

## Extracting links

```python
from linkscout.extractor import Extractor, FileType

extractor = Extractor()
for raw in extractor.extract('<a href="https://example.org">docs</a>', FileType.HTML):
    print(raw.text, raw.element, raw.attribute)   # https://example.org a href
```

`FileType.from_path("README.md")` picks the file type from a path's
extension. Markdown extensions such as `.md` and `.markdown` give
`FileType.MARKDOWN`. `.htm` and `.html` give `FileType.HTML`. Any other path
is read as `FileType.PLAINTEXT`.

You can also call the format-specific functions directly:

- `linkscout.html.extract_html(buf, include_verbatim)` and
  `linkscout.html.extract_html_fragments(buf)`
- `linkscout.markdown.extract_markdown(text, include_verbatim)` and
  `linkscout.markdown.extract_markdown_fragments(text)`
- `linkscout.plaintext.extract_raw_uri_from_plaintext(text)` and
  `linkscout.plaintext.find_links(text)`
- `linkscout.srcset.parse(text)` for the URLs in an `srcset` attribute. It
  returns an empty list when the attribute is malformed.

### HTML

Links are taken from attributes such as `href`, `src`, `cite`, `srcset` and
a handful of element-specific ones, for example `form action` and
`video poster`. Some elements are skipped entirely:

- elements whose `rel` contains `nofollow`, `preconnect` or `dns-prefetch`;
- elements with a `prefix` attribute;
- stylesheets whose `href` starts with `@` or `/@`.

An e-mail address in an attribute is kept only when it is an `href` that
starts with `mailto:`.

Links in the text of the page are returned only when `include_verbatim` is
true. When it is false, text and attributes inside `<pre>`, `<code>`,
`<script>`, `<textarea>` and the other preformatted elements are skipped as
well. `extract_html_fragments` returns the values of all `id` attributes.

### Markdown

Inline links (`[text](dest)`) and images come back tagged as `a`/`href` and
`img`/`src`. Links in text, autolinks and reference links come back untagged.
Code blocks and inline code are searched only when `include_verbatim` is true.
`$…$` and `$$…$$` math is never searched. Embedded HTML goes through the HTML
extractor.

Each heading produces a GitHub-style kebab-case fragment id (see
`linkscout.markdown.into_kebab_case` and `HeadingIdGenerator`). Repeated
headings get `-1`, `-2`, … appended. An explicit `{#id}` heading attribute is
added alongside the generated id.

## Filtering

```python
from linkscout.filter import Filter, Excludes, Includes, Uri

link_filter = Filter(excludes=Excludes([r"github\.com"]), exclude_private_ips=True)
link_filter.is_excluded(Uri.parse("https://github.com/some/repo"))   # True
link_filter.is_excluded(Uri.mail("someone@example.com"))             # True, mail is off by default
```

`Uri.parse` raises `ValueError` for text that is not a valid URI. A bare
e-mail address is turned into a `mailto:` URI.

`Filter.is_excluded` returns true for:

- schemes outside `schemes`, when that set is not empty;
- e-mail addresses, unless `include_mail` is set;
- `tel:` links;
- reserved example domains (`example.com`, `.test`, …), unless
  `check_example_domains` is set;
- unsupported sites such as `twitter.com`;
- loopback, private or link-local IPv4 addresses, each when its option is
  set. `localhost` counts as loopback.

After those checks, include patterns take precedence over exclude patterns.
When include patterns are set but do not match, the link is excluded. Some
well-known false positives, such as XML namespace URLs, are excluded unless an
include pattern matches them (see `is_false_positive`).

## Request handling

`linkscout.chain.Chain` is an async chain of `Handler` objects. Each handler
returns `Next(value)` to pass a value on, or `Done(result)` to stop the chain.
`Chain.traverse` runs one traversal at a time. `ClientRequestChains` runs
several chains in order. It returns the first `Done` result, or a fallback
(`EXCLUDED` by default) when no chain finishes.

`linkscout.quirks.Quirks` is a handler that rewrites a `Request` for sites
that need special treatment. It adds an `Accept: text/html` header for
crates.io, and it turns YouTube video links (`/watch?v=…`, `/embed/…` and
`youtu.be` short links) into thumbnail URLs.

## What it does not do

linkscout does not fetch anything. `Request` is a plain description of a
request, and no handler in the package sends it over the network. The package
has no HTTP client and no command-line program. It does not collect input from
files, globs or remote pages. It does not resolve relative links against a
base URL or directory. You supply the document text and act on the links it
returns.

## Development

```
pip install -e ".[test]"
pytest
```