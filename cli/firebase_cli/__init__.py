"""Command line front end for firebase_client."""
