import csv

import samplepackage
