"""Tests for catalogia import, facets, ancestry and remove."""

import json

from catalogia.storage import Repository
from tests.cli.conftest import invoke

COMPONENTS_YAML = """\
apiVersion: backstage.io/v1alpha1
kind: Component
metadata:
  name: billing
  tags: [python]
spec:
  owner: team-pay
---
apiVersion: backstage.io/v1alpha1
kind: Component
metadata:
  name: ledger
spec:
  owner: team-pay
"""


def test_version(runner):
    result = invoke(runner, ["--version"])
    assert result.exit_code == 0
    assert "catalogia" in result.output


def test_import_yaml(runner, cli_db, tmp_path):
    path = tmp_path / "components.yaml"
    path.write_text(COMPONENTS_YAML)
    result = invoke(runner, ["--json", "import", str(path), "--parent", "system:payments"], cli_db)
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "imported": ["component:default/billing", "component:default/ledger"]
    }

    result = invoke(runner, ["--json", "ancestry", "component:billing"], cli_db)
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["items"][0]["parentEntityRefs"] == ["system:default/payments"]


def test_import_json(runner, cli_db, tmp_path):
    path = tmp_path / "api.json"
    path.write_text(json.dumps([{"kind": "API", "metadata": {"name": "pay-api"}}]))
    result = invoke(runner, ["import", str(path)], cli_db)
    assert result.exit_code == 0
    assert "Imported 1 entities." in result.output


def test_import_missing_file(runner, cli_db, tmp_path):
    result = invoke(runner, ["import", str(tmp_path / "nope.yaml")], cli_db)
    assert result.exit_code == 2


def test_import_invalid_entity(runner, cli_db, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("kind: Component\nmetadata: {}\n")
    result = invoke(runner, ["import", str(path)], cli_db)
    assert result.exit_code == 4


def test_facets(runner, seeded_db):
    result = invoke(runner, ["--json", "facets", "metadata.tags", "kind"], seeded_db)
    assert result.exit_code == 0
    data = json.loads(result.stdout)["facets"]
    assert data["metadata.tags"] == [
        {"value": "python", "count": 2},
        {"value": "web", "count": 1},
    ]
    assert data["kind"][0] == {"value": "component", "count": 2}


def test_facets_filtered_table(runner, seeded_db):
    result = invoke(runner, ["facets", "spec.owner", "--filter", "kind=component"], seeded_db)
    assert result.exit_code == 0
    assert "team-a" in result.output
    assert "team-b" in result.output


def test_ancestry(runner, seeded_db):
    result = invoke(runner, ["--json", "ancestry", "component:default/service-a"], seeded_db)
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["rootEntityRef"] == "component:default/service-a"
    names = [i["entity"]["metadata"]["name"] for i in data["items"]]
    assert names == ["service-a", "team-loc", "root"]


def test_ancestry_table(runner, seeded_db):
    result = invoke(runner, ["ancestry", "component:service-b"], seeded_db)
    assert result.exit_code == 0
    assert "location:default/team-loc" in result.output


def test_ancestry_not_found(runner, seeded_db):
    result = invoke(runner, ["ancestry", "component:default/missing"], seeded_db)
    assert result.exit_code == 3


def test_ancestry_malformed_ref(runner, seeded_db):
    result = invoke(runner, ["ancestry", "no-kind"], seeded_db)
    assert result.exit_code == 2


def test_remove(runner, seeded_db):
    repo = Repository(seeded_db)
    uid = next(s.uid for s in repo.scan_entities() if s.ref == "api:default/api-x")
    repo.close()

    result = invoke(runner, ["remove", uid], seeded_db)
    assert result.exit_code == 0
    assert uid in result.output

    result = invoke(runner, ["remove", uid], seeded_db)
    assert result.exit_code == 3


def test_import_duplicate_uid(runner, cli_db, tmp_path):
    path = tmp_path / "dupes.yaml"
    path.write_text(
        "kind: Component\nmetadata: {name: a, uid: same}\n---\n"
        "kind: Component\nmetadata: {name: b, uid: same}\n"
    )
    result = invoke(runner, ["import", str(path)], cli_db)
    assert result.exit_code == 2
