"""Release archive and update server for CloudNet parent versions."""
