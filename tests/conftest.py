import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Add backend and the root scripts to path
sys.path.insert(0, os.path.join(ROOT, 'backend'))
sys.path.insert(0, ROOT)
