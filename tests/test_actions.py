from core.sonar import BuildResult, BuildSonarAction, ProjectSonarAction, SkipDecision, get_last_sonar_url, record_build_action
from core.sonar.actions import get_build_record


def test_build_action_links_to_dashboard():
    action = BuildSonarAction("http://sonar/dashboard")
    assert action.url_name == "http://sonar/dashboard"
    assert action.display_name == "Sonar"
    assert action.icon_file_name.endswith("sonar.png")


def test_record_and_fetch(database, make_build):
    build = make_build(number=3)
    build.add_action(BuildSonarAction("http://sonar/3"))

    with database.session_scope() as session:
        record_build_action(session, build, SkipDecision.proceed())

    with database.session_scope() as session:
        record = get_build_record(session, "my-job", 3)
        assert record.sonar_url == "http://sonar/3"
        assert record.result == "SUCCESS"
        assert not record.skipped


def test_recording_twice_replaces(database, make_build):
    build = make_build(number=1)
    with database.session_scope() as session:
        record_build_action(session, build, SkipDecision("Skipping Sonar analysis: no SCM changes"))

    build.add_action(BuildSonarAction("http://sonar/1"))
    with database.session_scope() as session:
        record_build_action(session, build, SkipDecision.proceed())

    with database.session_scope() as session:
        record = get_build_record(session, "my-job", 1)
        assert record.sonar_url == "http://sonar/1"
        assert not record.skipped
        assert record.skip_reason is None


def test_last_url_comes_from_newest_build_with_action(database, make_build):
    analysed = make_build(number=1)
    analysed.add_action(BuildSonarAction("http://sonar/1"))
    newer = make_build(number=2)
    newer.add_action(BuildSonarAction("http://sonar/2"))
    skipped = make_build(number=3)

    with database.session_scope() as session:
        record_build_action(session, newer)
        record_build_action(session, analysed)
        record_build_action(session, skipped, SkipDecision("Skipping Sonar analysis"))

    with database.session_scope() as session:
        assert get_last_sonar_url(session, "my-job") == "http://sonar/2"
        assert ProjectSonarAction("my-job").get_url_name(session) == "http://sonar/2"


def test_failed_analysis_hides_older_url(database, make_build):
    ok = make_build(number=1)
    ok.add_action(BuildSonarAction("http://sonar/1"))
    failed = make_build(number=2, result=BuildResult.FAILURE)
    failed.add_action(BuildSonarAction())

    with database.session_scope() as session:
        record_build_action(session, ok)
        record_build_action(session, failed)

    with database.session_scope() as session:
        assert get_last_sonar_url(session, "my-job") is None


def test_unknown_job_has_no_url(database):
    with database.session_scope() as session:
        assert get_last_sonar_url(session, "nobody") is None
