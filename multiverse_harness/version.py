# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

# Module version file.  Used by setup.py and snapshot reporting.

VERSION = "1.0.0"
