from workdesk.ingest.normalization import count_words, markdown_to_text, normalize_text


def test_normalize_text_collapses_whitespace_and_keeps_line_breaks() -> None:
    raw = "  Hello\r\n\r\n\r\n\tWorld  café  \n  end "

    assert normalize_text(raw) == "Hello\n\nWorld caf\nend"


def test_normalize_text_is_idempotent() -> None:
    samples = [
        "  Hello\r\n\r\n\r\n\tWorld  café  \n  end ",
        "a   b  c\n \n \n \nd",
        "x é y",
        "",
    ]
    for sample in samples:
        once = normalize_text(sample)
        assert normalize_text(once) == once


def test_normalize_text_drops_non_ascii_characters() -> None:
    assert normalize_text("naïve résumé ☃") == "nave rsum"


def test_markdown_to_text_strips_headers_and_emphasis() -> None:
    assert markdown_to_text("# Title\n**bold** and *italic*") == "Title\nbold and italic"


def test_markdown_to_text_strips_links_lists_quotes_and_code() -> None:
    markdown = (
        "## Setup\n"
        "- first item\n"
        "2. second item\n"
        "> quoted line\n"
        "See [the docs](https://example.com) and ![diagram](img.png).\n"
        "Run `make test` now.\n"
        "```\nprint('hidden')\n```\n\n\n\nDone"
    )

    text = markdown_to_text(markdown)

    assert text == (
        "Setup\n"
        "first item\n"
        "second item\n"
        "quoted line\n"
        "See the docs and diagram.\n"
        "Run make test now.\n\n"
        "Done"
    )


def test_count_words() -> None:
    assert count_words("one two\nthree\t four") == 4
    assert count_words("") == 0
