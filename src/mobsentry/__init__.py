"""mobsentry - static security analysis for mobile application source trees.

mobsentry walks a React Native / mobile project, runs security rules against
JavaScript and TypeScript sources, JSON app configuration, Android manifests
and iOS property lists, and reports findings such as hardcoded secrets,
insecure storage and platform misconfiguration. Unchanged files are served
from a content-fingerprint cache between runs.
"""

__version__ = "1.0.0"
