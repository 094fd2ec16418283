"""Tests for the docker.env generator."""

import json

from utils.gen_docker_env import main


def test_inlines_service_account(tmp_path):
    env = tmp_path / ".env"
    env.write_text("# comment\nRELAY_URL=https://relay.test\n\nGOOGLE_SERVICE_ACCOUNT_JSON=stale\n")
    key = tmp_path / "key.json"
    key.write_text(json.dumps({"client_email": "a@b", "private_key": "pem"}, indent=2))
    out = tmp_path / "docker.env"

    assert main(["--env", str(env), "--key", str(key), "--out", str(out)]) == 0

    lines = out.read_text().splitlines()
    assert lines[0] == "RELAY_URL=https://relay.test"
    assert lines[1] == 'GOOGLE_SERVICE_ACCOUNT_JSON={"client_email":"a@b","private_key":"pem"}'
    assert len(lines) == 2


def test_incomplete_key_fails(tmp_path):
    key = tmp_path / "key.json"
    key.write_text(json.dumps({"client_email": "a@b"}))
    out = tmp_path / "docker.env"

    assert main(["--env", str(tmp_path / "missing.env"), "--key", str(key), "--out", str(out)]) == 1
    assert not out.exists()
