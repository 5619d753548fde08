"""
Smart Scraper services

Page rendering, scrape sessions and AI column cleaning built on the
extraction engine.
"""
