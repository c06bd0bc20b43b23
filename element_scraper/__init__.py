"""Element scraper: finds and screenshots the distinct variations of a page element across a site."""
