"""Tests for the design data model."""

import json

import pytest
from pydantic import ValidationError
from tfbuilder.errors import DuplicateNameError
from tfbuilder.spec import Design, GenerationResult, GlobalConfig, Resource, validate_unique_names


class TestResource:
    def test_id_generated(self):
        a = Resource(type="key_vault", name="kv1")
        b = Resource(type="key_vault", name="kv2")
        assert a.id and b.id and a.id != b.id

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Resource(type="key_vault", name="   ")

    def test_tags_and_group(self):
        r = Resource(type="key_vault", name="kv1", config={"tags": {"a": "b"}, "resourceGroup": "rg-x"})
        assert r.tags == {"a": "b"}
        assert r.resource_group == "rg-x"
        assert Resource(type="key_vault", name="kv2").tags == {}


class TestGlobalConfig:
    def test_defaults(self):
        gc = GlobalConfig()
        assert (gc.project_name, gc.environment, gc.region) == ("iim", "nonprod", "Central US")
        assert gc.effective_location == "Central US"

    def test_aliases(self):
        gc = GlobalConfig.model_validate({"projectName": "p", "adRoles": ["Reader"], "landingZoneId": "z"})
        assert gc.project_name == "p"
        assert gc.ad_roles == ["Reader"]
        assert gc.to_api()["landingZoneId"] == "z"
        assert "location" not in gc.to_api()

    def test_location_wins(self):
        assert GlobalConfig(region="East US", location="West US").effective_location == "West US"

    def test_bad_environment(self):
        with pytest.raises(ValidationError):
            GlobalConfig(environment="staging")

    def test_blank_project(self):
        with pytest.raises(ValidationError):
            GlobalConfig(projectName="  ")


class TestGenerationResult:
    def test_to_api(self):
        data = GenerationResult(code="x", token_valid=True).to_api()
        assert data == {"code": "x", "useRemoteModules": True, "tokenValid": True, "warnings": []}


class TestDesign:
    def test_from_yaml(self):
        design = Design.from_yaml(
            """
name: demo
globalConfig:
  projectName: demo
  environment: dev
resources:
  - type: storage_account
    name: sa1
    config:
      accountTier: Standard
"""
        )
        assert design.name == "demo"
        assert design.global_config.environment == "dev"
        assert design.resources[0].config == {"accountTier": "Standard"}

    def test_duplicates_rejected(self):
        with pytest.raises(DuplicateNameError):
            Design.from_dict({"resources": [{"type": "a", "name": "X"}, {"type": "b", "name": "x"}]})

    def test_from_file_yaml_and_json(self, tmp_path):
        data = {"name": "d", "resources": [{"type": "key_vault", "name": "kv1"}]}
        (tmp_path / "d.json").write_text(json.dumps(data))
        (tmp_path / "d.yaml").write_text(Design.from_dict(data).to_yaml())
        assert Design.from_file(tmp_path / "d.json").resources[0].name == "kv1"
        assert Design.from_file(tmp_path / "d.yaml").resources[0].name == "kv1"

    def test_from_file_json_duplicates(self, tmp_path):
        path = tmp_path / "d.json"
        path.write_text(json.dumps({"resources": [{"type": "a", "name": "x"}, {"type": "a", "name": "x"}]}))
        with pytest.raises(DuplicateNameError):
            Design.from_file(path)

    def test_to_yaml_drops_empties(self):
        text = Design(resources=[Resource(id="r1", type="key_vault", name="kv1")]).to_yaml()
        assert "config" not in text
        assert "location" not in text
        assert Design.from_yaml(text).resources[0].id == "r1"


class TestValidateUniqueNames:
    def test_error_carries_ids(self):
        with pytest.raises(DuplicateNameError) as exc:
            validate_unique_names([Resource(id="a", type="t", name="N"), Resource(id="b", type="t", name="n")])
        assert exc.value.name == "n"
        assert "ids=a,b" in str(exc.value)

    def test_distinct_ok(self):
        validate_unique_names([Resource(type="t", name="a"), Resource(type="t", name="b")])
