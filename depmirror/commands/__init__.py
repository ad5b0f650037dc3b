"""Click commands of depmirror."""
