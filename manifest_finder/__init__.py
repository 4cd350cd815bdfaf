"""Web app manifest detection and scoring service"""
