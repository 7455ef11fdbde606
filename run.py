"""
Start the portal development server.

Usage: ``python run.py --port 8080 --debug``
"""

from portal.server import main

# Run only if executed directly
if __name__ == "__main__":
    main()
