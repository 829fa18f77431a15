import json

from samplepackage import helpers
