"""Story Launcher: install, update and launch the Story desktop tools."""
