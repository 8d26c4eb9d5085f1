"""
Assist Pipeline Run Tracker

Folds the server-pushed event stream of a voice assistant pipeline run
(speech-to-text -> intent -> text-to-speech) into immutable run snapshots.
"""

__version__ = "0.1.0"
