"""
assist-run CLI - Voice assistant pipeline runs

Commands:
- assist-run replay - Fold a recorded event file into its snapshot
- assist-run events inspect - List recorded events with filters
- assist-run run - Start a live text run and follow its snapshots
- assist-run pipelines list - Show configured pipelines
- assist-run debug list/get - Browse recorded runs on the server
"""
