"""Creator Studio: an approval pipeline for short vertical videos.

script -> narration, script -> image prompts -> images -> videos -> export
"""

__version__ = "0.1.0"
