"""
Unit tests for CLI option validation.
"""

from hum.utils.validators import validate_environment_name, validate_project_options


class TestValidateProjectOptions:

    def test_valid(self, tmp_path):
        assert validate_project_options("svc1", str(tmp_path / "new"), "web01.example.com") == (True, None)

    def test_invalid_name(self):
        is_valid, error = validate_project_options("bad name")
        assert not is_valid
        assert "Invalid project name" in error

    def test_invalid_host(self):
        is_valid, error = validate_project_options("svc1", host="bad host")
        assert not is_valid
        assert "Invalid host" in error

    def test_non_empty_output(self, tmp_path):
        (tmp_path / "file.txt").write_text("x")
        is_valid, error = validate_project_options("svc1", str(tmp_path))
        assert not is_valid
        assert "not empty" in error

    def test_empty_output_directory_allowed(self, tmp_path):
        assert validate_project_options("svc1", str(tmp_path)) == (True, None)


class TestValidateEnvironmentName:

    def test_names(self):
        assert validate_environment_name("staging")[0]
        assert validate_environment_name("prod-eu_1")[0]
        assert not validate_environment_name("1prod")[0]
        assert not validate_environment_name("")[0]
