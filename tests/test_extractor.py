"""Tests for the schema-free statistics extractor.

Each snippet mimics the markup of a tracker layout the patterns were
tuned against. Snippets are kept free of stray digits so a window can
only land on the intended value.
"""

import math

import pytest

from tracker_exporter.extractor import (
    extract_statistics,
    parse_bytes,
    parse_number,
)

TIB = 1024**4
GIB = 1024**3

SAMPLE_PROFILE = """
<html>
<head><title>User Profile</title></head>
<body>
  <div id="stats">
    <span>Uploaded: 3.03 TB</span>
    <span>Downloaded: 575.67 GB</span>
    <span>Ratio: 5.39</span>
  </div>
</body>
</html>
"""

UNIT3D_TABLE = """
<table>
<tr><td>Uploaded</td><td>1.5 TB</td></tr>
<tr><td>Downloaded</td><td>250.25 GB</td></tr>
<tr><td>Buffer</td><td>1.25 TB</td></tr>
<tr><td>Ratio</td><td>6.138</td></tr>
<tr><td>Bonus Points:</td><td>12,345.5</td></tr>
<tr><td>Seeding:</td><td>42</td></tr>
<tr><td>Leeching:</td><td>1</td></tr>
<tr><td>Hit and Run</td><td>0</td></tr>
</table>
"""


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------
class TestParseHelpers:
    """Tests for parse_number() and parse_bytes()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("33,781.61", 33781.61),
            ("139 512", 139512.0),
            ("1 234", 1234.0),
            ("1 234.5", 1234.5),
            ("5.39", 5.39),
        ],
    )
    def test_parse_number_strips_separators(self, text, expected):
        assert parse_number(text) == expected

    @pytest.mark.parametrize(
        "unit, multiplier",
        [
            ("B", 1),
            ("KB", 1024),
            ("KiB", 1024),
            ("mb", 1024**2),
            ("GiB", 1024**3),
            ("TB", 1024**4),
            ("PiB", 1024**5),
        ],
    )
    def test_parse_bytes_is_binary(self, unit, multiplier):
        assert parse_bytes("2", unit) == 2 * multiplier

    def test_parse_bytes_floors(self):
        assert parse_bytes("1.5", "B") == 1


# ---------------------------------------------------------------------------
# Whole-page extraction
# ---------------------------------------------------------------------------
class TestSampleProfile:
    """Plain profile page with the three core fields."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.stats = extract_statistics(SAMPLE_PROFILE)

    def test_uploaded_binary_terabytes(self):
        assert self.stats.uploaded == math.floor(3.03 * TIB)

    def test_downloaded(self):
        assert self.stats.downloaded == math.floor(575.67 * GIB)

    def test_ratio_exact(self):
        assert self.stats.ratio == 5.39

    def test_missing_fields_absent(self):
        assert self.stats.buffer is None
        assert self.stats.bonus is None
        assert self.stats.seeding is None
        assert self.stats.leeching is None
        assert self.stats.hit_and_runs is None


class TestUnit3DTable:
    """Table layout carrying every field."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.stats = extract_statistics(UNIT3D_TABLE)

    def test_byte_fields(self):
        assert self.stats.uploaded == math.floor(1.5 * TIB)
        assert self.stats.downloaded == math.floor(250.25 * GIB)
        assert self.stats.buffer == math.floor(1.25 * TIB)

    def test_ratio(self):
        assert self.stats.ratio == 6.138

    def test_bonus_with_thousands_separator(self):
        assert self.stats.bonus == 12345.5

    def test_counts(self):
        assert self.stats.seeding == 42
        assert self.stats.leeching == 1
        assert self.stats.hit_and_runs == 0

    def test_all_fields_present(self):
        assert len(self.stats.present_fields()) == 8


# ---------------------------------------------------------------------------
# Byte metrics
# ---------------------------------------------------------------------------
class TestByteMetrics:
    """Label -> window -> number + unit."""

    def test_no_unit_near_label_is_absent(self):
        stats = extract_statistics("<p>Uploaded files: none</p><p>Downloaded yesterday</p>")
        assert stats.uploaded is None
        assert stats.downloaded is None

    def test_absent_is_not_zero(self):
        stats = extract_statistics("<p>nothing here</p>")
        assert stats.uploaded is None
        assert stats.uploaded != 0

    def test_achievement_badge_skipped_gt_entity(self):
        html = (
            "<li class='badge'>Uploaded &gt;= 1 TB</li>"
            "<td>Uploaded</td><td>2.5 GB</td>"
        )
        assert extract_statistics(html).uploaded == math.floor(2.5 * GIB)

    def test_achievement_badge_skipped_raw(self):
        html = "<li>Uploaded >= 1 TB</li><td>Uploaded</td><td>2.5 GB</td>"
        assert extract_statistics(html).uploaded == math.floor(2.5 * GIB)

    def test_comma_thousands_separator(self):
        html = "<span>Uploaded: 1,234.56 GB</span>"
        assert extract_statistics(html).uploaded == math.floor(1234.56 * GIB)

    def test_space_thousands_separator(self):
        html = "<span>Downloaded: 12 345 MB</span>"
        assert extract_statistics(html).downloaded == 12345 * 1024**2

    def test_unit_case_insensitive(self):
        html = "<span>uploaded: 10 gib</span>"
        assert extract_statistics(html).uploaded == 10 * GIB

    def test_kb_is_kib(self):
        assert extract_statistics("<b>Buffer</b> 1 KB").buffer == 1024

    def test_plain_bytes(self):
        assert extract_statistics("<b>Buffer</b> 512 B").buffer == 512

    def test_value_beyond_window_ignored(self):
        html = "Uploaded" + "x" * 400 + "5 GB"
        assert extract_statistics(html).uploaded is None


# ---------------------------------------------------------------------------
# Ratio
# ---------------------------------------------------------------------------
class TestRatio:
    """Ratio prefers a decimal and skips >= badges."""

    def test_badge_not_picked_over_real_value(self):
        html = "<div>Ratio >= 5.0 badge</div><span>Ratio: 5.39</span>"
        assert extract_statistics(html).ratio == 5.39

    def test_badge_entity_not_picked(self):
        html = "<div>Ratio &gt;= 5.0</div><span>Ratio: 1.16</span>"
        assert extract_statistics(html).ratio == 1.16

    def test_integer_fallback(self):
        assert extract_statistics("<td>Ratio</td><td>3</td>").ratio == 3.0

    def test_no_number_is_absent(self):
        assert extract_statistics("<td>Ratio</td><td>---</td>").ratio is None


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------
class TestCounts:
    """Seeding / leeching / hit-and-run phrasings."""

    def test_torrentleech_parenthesized(self):
        html = (
            "<div>Uploaded (Seeding)</div><span class='count'>(296)</span>"
            "<div>Downloaded (Leeching)</div><span class='count'>(1)</span>"
        )
        stats = extract_statistics(html)
        assert stats.seeding == 296
        assert stats.leeching == 1

    def test_bwtorrents_torrent_lists(self):
        html = (
            "<td>Torrents seeding</td><td><a href='#s'>12</a></td>"
            "<td>Torrents leeching</td><td><a href='#l'>3</a></td>"
        )
        stats = extract_statistics(html)
        assert stats.seeding == 12
        assert stats.leeching == 3

    def test_arrow_entities(self):
        html = "<span>&uarr; 448</span> <span>&darr; 771</span>"
        stats = extract_statistics(html)
        assert stats.seeding == 448
        assert stats.leeching == 771

    def test_generic_label_colon(self):
        html = "<dt>Seeding:</dt><dd>4</dd><dt>Leeching:</dt><dd>0</dd>"
        stats = extract_statistics(html)
        assert stats.seeding == 4
        assert stats.leeching == 0

    def test_title_attribute(self):
        html = '<i title="Seeding"></i> 7'
        assert extract_statistics(html).seeding == 7

    def test_first_pattern_wins_over_page_order(self):
        """The TorrentLeech form is tried before the generic one."""
        html = "<p>Seeding: 9</p><div>Uploaded (Seeding)</div><span>(296)</span>"
        assert extract_statistics(html).seeding == 296

    @pytest.mark.parametrize(
        "html, expected",
        [
            ("<td>Hit &amp; Run:</td><td>2</td>", 2),
            ("<td>H&R:</td><td>3</td>", 3),
            ("<td>HnR</td><td>0</td>", 0),
            ("<td>Hit and Runs</td><td>5</td>", 5),
        ],
    )
    def test_hit_and_run_phrasings(self, html, expected):
        assert extract_statistics(html).hit_and_runs == expected


# ---------------------------------------------------------------------------
# Bonus
# ---------------------------------------------------------------------------
class TestBonus:
    """Bonus label synonyms and separators."""

    def test_tl_points(self):
        assert extract_statistics("<span>TL Points: 33,781.61</span>").bonus == 33781.61

    def test_bon_nbsp_entity_and_space_thousands(self):
        assert extract_statistics("<span>BON&nbsp;139 512</span>").bonus == 139512.0

    def test_bonus_points_decimal(self):
        assert extract_statistics("<td>Bonus Points:</td><td>1300.67</td>").bonus == 1300.67

    def test_label_inside_word_ignored(self):
        html = (
            '<div class="ribbon">Season 2024</div>'
            "<span>Bonus Points: 1,300.67</span>"
        )
        assert extract_statistics(html).bonus == 1300.67

    def test_byte_label_inside_word_ignored(self):
        html = "<p>Reuploaded 9 GB</p><p>Uploaded: 2 GB</p>"
        assert extract_statistics(html).uploaded == 2 * GIB

    def test_label_without_delimiter_ignored(self):
        assert extract_statistics("<p>Bonus round 5</p>").bonus is None


class TestEmptyInput:
    """Extraction never raises on empty or unrelated input."""

    @pytest.mark.parametrize("html", ["", "<html></html>", "Just a moment..."])
    def test_everything_absent(self, html):
        assert extract_statistics(html).present_fields() == []
