from horizon_scan.core.types import SendResult
from horizon_scan.runner import build_provider, build_service


def _no_provider(cfg):
    return None


def test_service_without_mail_credentials_only_polls(tmp_path, app_config):
    service = build_service(
        app_config,
        database=str(tmp_path / "svc.db"),
        provider_factory=_no_provider,
        sender_factory=lambda cfg: None,
    )
    try:
        assert [job.name for job in service.schedulers] == ["poll"]
    finally:
        service.shutdown()


def test_service_with_sender_schedules_digest(tmp_path, app_config):
    service = build_service(
        app_config,
        database=str(tmp_path / "svc.db"),
        provider_factory=_no_provider,
        sender_factory=lambda cfg: (lambda recipient, subject, html: SendResult.ok("id")),
    )
    assert [job.name for job in service.schedulers] == ["poll", "digest"]

    service.start()
    service.shutdown("test")
    service.shutdown("again")

    assert service.wait(0)
    assert all(not job._thread.is_alive() for job in service.schedulers)


def test_digest_job_runs_a_digest_cycle(tmp_path, app_config):
    sent = []
    service = build_service(
        app_config,
        database=str(tmp_path / "svc.db"),
        provider_factory=_no_provider,
        sender_factory=lambda cfg: (lambda *args: sent.append(args) or SendResult.ok("id")),
    )
    try:
        digest_job = service.schedulers[1]
        assert digest_job.tick() is True
        assert digest_job.runs == 1
        assert sent == []
    finally:
        service.shutdown()


def test_build_provider_failure_disables_assessment(monkeypatch, app_config):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    assert build_provider(app_config) is None
