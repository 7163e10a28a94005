"""
Tests for the broker CLI.

Tests verify:
- describe prints the mapping of a bean type
- preview-sql prints the generated statements without a database
- Invalid arguments exit with an error code
"""

from typer.testing import CliRunner

from cli import app

runner = CliRunner()


class TestDescribe:
    def test_describe_bean(self):
        result = runner.invoke(app, ["describe", "sample_beans:Customer"])

        assert result.exit_code == 0
        assert "CUSTOMER" in result.output
        assert "logical delete" in result.output
        assert "CUS_IS_ACTIF" in result.output

    def test_unknown_type(self):
        result = runner.invoke(app, ["describe", "sample_beans:Missing"])

        assert result.exit_code == 1

    def test_not_persistable(self):
        result = runner.invoke(app, ["describe", "sample_beans:NoKey"])

        assert result.exit_code == 1


class TestPreviewSql:
    def test_delete(self):
        result = runner.invoke(
            app,
            ["preview-sql", "sample_beans:Product", "-o", "delete", "-d", "sqlserver", "-w", "PRO_ID=1"],
        )

        assert result.exit_code == 0
        assert "delete from PRODUCT where PRO_ID = @PRO_ID" in result.output

    def test_select_with_limit_on_sqlite(self):
        result = runner.invoke(
            app,
            ["preview-sql", "sample_beans:Document", "-d", "sqlite", "-l", "5", "-s", "DOC_TITLE"],
        )

        assert result.exit_code == 0
        assert "select DOC_ID, DOC_TITLE from DOCUMENT order by DOC_TITLE asc limit @top" in result.output

    def test_unknown_operation(self):
        result = runner.invoke(app, ["preview-sql", "sample_beans:Product", "-o", "merge"])

        assert result.exit_code == 1


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output
