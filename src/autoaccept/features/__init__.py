# Feature packages
# monitor: accept-button monitor, auto-watcher and diagnostics
