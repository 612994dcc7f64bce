import json

from task_tracker.generate_openapi import generate_openapi, main


def test_writes_schema_with_all_routes_and_tags(tmp_path):
    out = tmp_path / "interfaces" / "openapi.json"
    written = generate_openapi(str(out))
    assert written == str(out)

    schema = json.loads(out.read_text(encoding="utf-8"))
    paths = schema["paths"]
    for path in [
        "/api/v1/auth/signup",
        "/api/v1/auth/login",
        "/api/v1/auth/me",
        "/api/v1/users/",
        "/api/v1/tasks/",
        "/api/v1/tasks/stats",
        "/api/v1/tasks/{task_id}",
        "/api/v1/tasks/{task_id}/toggle-complete",
    ]:
        assert path in paths
    assert {t["name"] for t in schema["tags"]} >= {"health", "auth", "users", "tasks"}


def test_main_accepts_output_argument(tmp_path):
    out = tmp_path / "schema.json"
    main([str(out)])
    assert out.exists()
