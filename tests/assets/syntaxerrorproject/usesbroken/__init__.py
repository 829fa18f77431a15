import brokenpackage
import json
