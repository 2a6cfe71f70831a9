from targetprocess_mcp.server.main import main

main()
