from html.parser import HTMLParser

from tmonks.templates import index_page


class _Collector(HTMLParser):
    def __init__(self):
        super().__init__()
        self.ids = []
        self.scripts = []
        self.data_keys = []
        self.in_script = False
        self.script_text = ""

    def handle_starttag(self, tag, attrs):
        attrs = dict(attrs)
        if "id" in attrs:
            self.ids.append(attrs["id"])
        if "data-key" in attrs:
            self.data_keys.append(attrs["data-key"])
        if tag == "script":
            self.scripts.append(attrs)
            self.in_script = True

    def handle_endtag(self, tag):
        if tag == "script":
            self.in_script = False

    def handle_data(self, data):
        if self.in_script:
            self.script_text += data


def _parse():
    collector = _Collector()
    collector.feed(index_page())
    return collector


def test_index_contains_title_and_assets():
    page = index_page()
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>tmonks</title>" in page
    assert "/assets/main.js" in page
    assert "/assets/vendor/xterm.css" in page
    assert "/assets/main.css" in page


def test_no_inline_scripts():
    collector = _parse()
    assert collector.scripts
    assert all(attrs.get("src") for attrs in collector.scripts)
    assert collector.script_text.strip() == ""


def test_ids_are_unique_and_include_containers():
    ids = _parse().ids
    assert len(ids) == len(set(ids))
    for expected in ("app", "sidebar", "session-list", "pane-area", "terminal-container", "key-row"):
        assert expected in ids


def test_key_row_buttons():
    assert _parse().data_keys == ["esc", "tab", "ctrl-c", "up", "down", "left", "right"]


def test_div_tags_balanced():
    page = index_page()
    assert page.count("<div") == page.count("</div>")
    assert page.count("<button") == page.count("</button>")