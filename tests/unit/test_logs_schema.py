"""
Tests for the get_logs_schema tool.
"""

import json

import pytest

from coralogix_mcp.models.query import QuerySyntax
from coralogix_mcp.services.query_processor import detect_query_syntax
from coralogix_mcp.tools.logs_schema import build_logs_schema


class TestBuildLogsSchema:

    def test_default_shape(self):
        schema = build_logs_schema()

        assert set(schema) == {"commonFields", "searchExamples", "queryTips", "fieldAliases"}
        assert {"timestamp", "severity", "text", "applicationName", "traceId"} <= set(schema["commonFields"])
        assert len(schema["searchExamples"]) == 8
        assert len(schema["queryTips"]["dataPrime"]) == 5
        assert schema["fieldAliases"]["level"] == "severity"
        assert schema["fieldAliases"]["host"] == "computerName"

    def test_examples_can_be_excluded(self):
        schema = build_logs_schema(include_examples=False)

        assert schema["searchExamples"] == {}
        assert schema["commonFields"]

    def test_advanced_tips(self):
        basic = build_logs_schema()["queryTips"]["dataPrime"]
        advanced = build_logs_schema(include_advanced=True)["queryTips"]["dataPrime"]

        assert len(advanced) == 10
        assert advanced[:5] == basic
        assert "Use join for combining datasets" in advanced

    def test_lucene_tips_do_not_depend_on_flags(self):
        assert (
            build_logs_schema()["queryTips"]["lucene"]
            == build_logs_schema(include_advanced=True)["queryTips"]["lucene"]
        )

    def test_callers_cannot_mutate_catalog(self):
        schema = build_logs_schema()
        schema["commonFields"]["severity"]["type"] = "changed"
        schema["queryTips"]["dataPrime"].append("extra")

        fresh = build_logs_schema()
        assert fresh["commonFields"]["severity"]["type"] == "string"
        assert len(fresh["queryTips"]["dataPrime"]) == 5

    def test_examples_are_classified_correctly(self):
        for example in build_logs_schema()["searchExamples"].values():
            assert detect_query_syntax(example["luceneQuery"]) is QuerySyntax.LUCENE
            assert detect_query_syntax(example["dataPrimeQuery"]) is QuerySyntax.DATAPRIME


class TestLogsSchemaTool:

    @pytest.mark.asyncio
    async def test_call_with_defaults(self, fastmcp_client):
        result = await fastmcp_client.call_tool("get_logs_schema", {})

        payload = json.loads(result.content[0].text)
        assert payload == build_logs_schema()

    @pytest.mark.asyncio
    async def test_call_with_flags(self, fastmcp_client):
        result = await fastmcp_client.call_tool(
            "get_logs_schema", {"includeExamples": False, "includeAdvanced": True}
        )

        payload = json.loads(result.content[0].text)
        assert payload["searchExamples"] == {}
        assert len(payload["queryTips"]["dataPrime"]) == 10
