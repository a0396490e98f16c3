"""Command line front end for the topic selection engine."""
