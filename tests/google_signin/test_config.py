from pathlib import Path

import pytest

import google_signin as m


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "AUDIENCES",
        "HOSTED_DOMAINS",
        "LEEWAY",
        "CERTS_URL",
        "TOKENINFO_URL",
        "CONNECT_TIMEOUT",
        "REFRESH_ON_UNKNOWN_KID",
    ):
        monkeypatch.delenv(f"GOOGLE_SIGNIN_{name}", raising=False)


def test_defaults(tmp_path: Path):
    client, verification = m.load_config(env_file=str(tmp_path / "missing.env"))

    assert client.certs_url == m.GOOGLE_CERTS_URL
    assert client.tokeninfo_url == m.GOOGLE_TOKENINFO_URL
    assert client.connect_timeout == 10.0
    assert client.refresh_on_unknown_kid is False
    assert verification.audiences == ()
    assert verification.issuers == m.GOOGLE_ISSUERS


def test_environment_values(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("GOOGLE_SIGNIN_AUDIENCES", "a, b ,,c")
    monkeypatch.setenv("GOOGLE_SIGNIN_LEEWAY", "30")
    monkeypatch.setenv("GOOGLE_SIGNIN_CONNECT_TIMEOUT", "2.5")
    monkeypatch.setenv("GOOGLE_SIGNIN_REFRESH_ON_UNKNOWN_KID", "true")

    client, verification = m.load_config(env_file=str(tmp_path / "missing.env"))

    assert verification.audiences == ("a", "b", "c")
    assert verification.leeway == 30
    assert client.connect_timeout == 2.5
    assert client.refresh_on_unknown_kid is True


def test_dotenv_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    env_file = tmp_path / ".env"
    env_file.write_text("MYAPP_AUDIENCES=from-file\nMYAPP_HOSTED_DOMAINS=corp.com\n")
    monkeypatch.delenv("MYAPP_AUDIENCES", raising=False)
    monkeypatch.delenv("MYAPP_HOSTED_DOMAINS", raising=False)

    try:
        _, verification = m.load_config(prefix="MYAPP_", env_file=str(env_file))
        assert verification.audiences == ("from-file",)
        assert verification.hosted_domains == ("corp.com",)
    finally:
        # load_dotenv writes into os.environ; let monkeypatch undo it
        monkeypatch.delenv("MYAPP_AUDIENCES", raising=False)
        monkeypatch.delenv("MYAPP_HOSTED_DOMAINS", raising=False)


def test_invalid_number_is_configuration_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("GOOGLE_SIGNIN_LEEWAY", "soon")

    with pytest.raises(m.ConfigurationError):
        m.load_config(env_file=str(tmp_path / "missing.env"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"connect_timeout": 0},
        {"max_idle_connections": -1},
        {"min_refresh_interval": 0},
    ],
)
def test_client_config_validation(kwargs: dict[str, float]):
    with pytest.raises(m.ConfigurationError):
        m.ClientConfig(**kwargs)


def test_verification_config_normalises_to_tuples():
    config = m.VerificationConfig(audiences=["a"], hosted_domains=["x.com"])

    assert config.audiences == ("a",)
    assert config.hosted_domains == ("x.com",)


def test_verification_config_rejects_negative_leeway():
    with pytest.raises(m.ConfigurationError):
        m.VerificationConfig(leeway=-1)
