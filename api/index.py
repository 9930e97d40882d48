import sys
import os

# Add the root directory to the path so that 'storefront_reviews' can be imported
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from storefront_reviews.main import app

# Serverless entry point (Vercel looks for `handler`)
handler = app
