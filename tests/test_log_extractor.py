import pytest

from core.sonar import extract_sonar_project_url_from_logs, extract_sonar_url


def test_no_match_returns_none():
    assert extract_sonar_url(["[INFO] BUILD SUCCESS", "done"]) is None


def test_empty_log_returns_none():
    assert extract_sonar_url([]) is None


def test_last_occurrence_wins():
    lines = [
        "ANALYSIS SUCCESSFUL, you can browse http://a",
        "something else",
        "ANALYSIS SUCCESSFUL, you can browse http://b",
    ]
    assert extract_sonar_url(lines) == "http://b"


def test_url_is_kept_verbatim():
    lines = ["ANALYSIS SUCCESSFUL, you can browse http://x/y?z=1"]
    assert extract_sonar_url(lines) == "http://x/y?z=1"


def test_maven_log_prefix():
    lines = ["[INFO] ANALYSIS SUCCESSFUL, you can browse http://sonar:9000/dashboard/index/org.acme:app\n"]
    assert extract_sonar_url(lines) == "http://sonar:9000/dashboard/index/org.acme:app"


def test_windows_line_endings_are_stripped():
    assert extract_sonar_url(["ANALYSIS SUCCESSFUL, you can browse http://a\r\n"]) == "http://a"


def test_sentinel_is_case_sensitive():
    assert extract_sonar_url(["analysis successful, you can browse http://a"]) is None


def test_consumes_a_generator_once():
    lines = (line for line in ["x", "ANALYSIS SUCCESSFUL, you can browse http://a"])
    assert extract_sonar_url(lines) == "http://a"
    assert list(lines) == []


def test_extracts_from_build_log(make_build, write_log):
    build = make_build()
    write_log(build, [
        "[INFO] Scanning for projects...",
        "[INFO] ANALYSIS SUCCESSFUL, you can browse http://sonar/dashboard?id=1",
        "[INFO] BUILD SUCCESS",
    ])
    assert extract_sonar_project_url_from_logs(build) == "http://sonar/dashboard?id=1"


class ClosingTracker:
    def __init__(self, lines, fail_after=None):
        self.lines = lines
        self.fail_after = fail_after
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def __iter__(self):
        for i, line in enumerate(self.lines):
            if self.fail_after is not None and i >= self.fail_after:
                raise OSError("log truncated")
            yield line


def test_read_error_discards_partial_result_and_closes(make_build):
    build = make_build()
    tracker = ClosingTracker(["ANALYSIS SUCCESSFUL, you can browse http://a", "more"], fail_after=1)
    build.open_log = lambda: tracker

    with pytest.raises(OSError):
        extract_sonar_project_url_from_logs(build)
    assert tracker.closed


def test_log_closed_after_successful_scan(make_build):
    build = make_build()
    tracker = ClosingTracker(["nothing here"])
    build.open_log = lambda: tracker

    assert extract_sonar_project_url_from_logs(build) is None
    assert tracker.closed


def test_missing_log_raises(make_build):
    with pytest.raises(OSError):
        extract_sonar_project_url_from_logs(make_build())


@pytest.mark.parametrize("line", [
    "ANALYSIS SUCCESSFUL, you can browse http://a\u2028b",
    "[INFO]\u0085 ANALYSIS SUCCESSFUL, you can browse http://a",
    "ANALYSIS SUCCESSFUL, you can browse http://a\u2029",
])
def test_unicode_line_separators_do_not_match(line):
    assert extract_sonar_url([line]) is None


def test_unicode_separator_does_not_hide_later_match():
    lines = [
        "ANALYSIS SUCCESSFUL, you can browse http://a",
        "ANALYSIS SUCCESSFUL, you can browse http://b\u2028",
    ]
    assert extract_sonar_url(lines) == "http://a"
