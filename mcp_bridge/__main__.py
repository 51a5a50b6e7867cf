"""`python -m mcp_bridge`：启动 HTTP Bridge。"""

import sys

from mcp_bridge.api.app import main

if __name__ == "__main__":
    sys.exit(main())
