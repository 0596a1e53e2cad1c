import sys

from yt_mcp.yt_server import main

sys.exit(main())
