"""Test import server tool registration."""

import pytest
from fastmcp import FastMCP

from quicken.import_server.tools import register_import_tools


class TestImportServerRegistration:
    """Test suite for import server tool registration."""

    @pytest.mark.asyncio
    async def test_import_server_registration(self):
        """Test that import server tools register correctly."""
        mcp = FastMCP(name="Test Import Server")
        register_import_tools(mcp)

        tools = await mcp.get_tools()
        tool_names = list(tools)

        expected_tools = [
            "list_import_candidates",
            "add_import",
            "get_exported_identifiers",
            "fix_broken_imports",
            "invalidate_export_cache",
            "insert_text",
        ]

        assert len(tool_names) == 6, f"Expected 6 import tools, got {len(tool_names)}"
        for tool in expected_tools:
            assert tool in tool_names, f"Import tool '{tool}' not registered"

    @pytest.mark.asyncio
    async def test_main_server_registers_import_tools(self):
        """Test that the server module exposes all import tools."""
        from quicken.import_server.server import mcp

        tools = await mcp.get_tools()

        assert "add_import" in list(tools)
        assert len(list(tools)) == 6
