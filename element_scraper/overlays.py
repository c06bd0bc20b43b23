"""
Floating element handler module.
Hides sticky headers, cookie banners, chat widgets and other overlays that would
otherwise cover the elements being captured.
"""

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import Page

FLOATING_SELECTORS: List[str] = [
    # Site headers (first for priority)
    '.site-header',
    '#site-header',
    'header.header',
    'header[class*="header"]',
    '[class*="site-header"]',
    '[id*="site-header"]',
    # Cookie banners
    '[class*="cookie"]',
    '[id*="cookie"]',
    '[class*="gdpr"]',
    '[id*="gdpr"]',
    # Chat widgets
    '[class*="chat"]',
    '[id*="chat"]',
    '[class*="intercom"]',
    '[id*="intercom"]',
    '[class*="zendesk"]',
    '[id*="zendesk"]',
    # Popups and modals
    '[class*="popup"]',
    '[id*="popup"]',
    '[class*="modal"]',
    '[id*="modal"]',
    '[class*="overlay"]',
    '[id*="overlay"]',
    # Newsletter/subscription popups
    '[class*="newsletter"]',
    '[id*="newsletter"]',
    '[class*="subscribe"]',
    '[id*="subscribe"]',
    '[class*="signup"]',
    '[id*="signup"]',
    # Notification bars
    '[class*="notification"]',
    '[id*="notification"]',
    '[class*="banner"]',
    '[id*="banner"]',
    '[class*="alert"]',
    '[id*="alert"]',
    # Inline fixed positioning
    '[style*="position: fixed"]',
    '[style*="position:fixed"]',
    # WordPress popup plugins
    '.pum-overlay',
    '.elementor-popup-modal',
    '.mfp-bg',
    '.fancybox-overlay',
    # Sticky bars
    '[class*="sticky"]',
    '[class*="fixed"]',
]

CLOSE_BUTTON_SELECTORS: List[str] = [
    '[aria-label*="close" i]',
    '[title*="close" i]',
    '.close',
    '.modal-close',
    '.popup-close',
    '[class*="close"]',
    'button:has-text("×")',
    'button:has-text("Close")',
    'button:has-text("Dismiss")',
]

MAIN_CONTENT_SELECTOR = '.entry-content, .main-content, .content, main'

HIDE_FLOATING_SCRIPT = """
([sel, mainContent]) => {
    let hidden = 0;
    document.querySelectorAll(sel).forEach((el) => {
        const style = window.getComputedStyle(el);
        const floating = style.position === 'fixed' || style.position === 'sticky';
        if (sel.toLowerCase().includes('header') && floating) {
            el.style.visibility = 'hidden';
            hidden++;
            return;
        }
        if (floating && parseInt(style.zIndex) > 999 && !el.closest(mainContent)) {
            el.style.display = 'none';
            hidden++;
        }
    });
    return hidden;
}
"""

HIDE_STICKY_OVERLAYS_SCRIPT = """
(mainContent) => {
    let hidden = 0;
    const headers = document.querySelectorAll(
        'header, .site-header, #site-header, [class*="site-header"], [class*="header"]'
    );
    headers.forEach((header) => {
        const style = window.getComputedStyle(header);
        if (style.position === 'fixed' || style.position === 'sticky') {
            header.style.visibility = 'hidden';
            hidden++;
        }
    });
    document.querySelectorAll('[style*="position: fixed"]').forEach((el) => {
        const style = window.getComputedStyle(el);
        if (style.position === 'fixed' && parseInt(style.zIndex) > 1000 && !el.closest(mainContent)) {
            el.style.visibility = 'hidden';
            hidden++;
        }
    });
    return hidden;
}
"""


class FloatingElementRemover:
    """Neutralises overlays on a loaded page."""

    def __init__(self, logger: Optional[logging.Logger] = None, click_timeout: float = 2.0):
        self.logger = logger or logging.getLogger(__name__)
        self.click_timeout = click_timeout

    async def remove_floating_elements(self, page: Page) -> int:
        """
        Hide floating headers and high z-index overlays, then click visible close buttons.

        Individual selector failures are ignored.

        Returns:
            Number of elements hidden
        """
        self.logger.info("🧹 Removing floating elements and popups...")
        hidden = 0
        for selector in FLOATING_SELECTORS:
            try:
                hidden += await page.evaluate(HIDE_FLOATING_SCRIPT, [selector, MAIN_CONTENT_SELECTOR]) or 0
            except Exception as e:
                self.logger.debug(f"Skipping floating selector {selector}: {e}")

        clicked = await self._click_close_buttons(page)
        self.logger.info(f"✅ Floating elements removal completed ({hidden} hidden, {clicked} close buttons clicked)")
        return hidden

    async def _click_close_buttons(self, page: Page) -> int:
        clicked = 0
        timeout_ms = self.click_timeout * 1000
        for selector in CLOSE_BUTTON_SELECTORS:
            try:
                close_button = page.locator(selector).first
                if await close_button.is_visible():
                    await close_button.click(timeout=timeout_ms)
                    clicked += 1
                    self.logger.debug(f"Clicked close button: {selector}")
                    await asyncio.sleep(0.5)
            except Exception as e:
                self.logger.debug(f"Close button {selector} not clickable: {e}")
        return clicked

    async def hide_sticky_overlays(self, page: Page) -> int:
        """Hide sticky headers and fixed overlays that appeared since the page loaded."""
        try:
            hidden = await page.evaluate(HIDE_STICKY_OVERLAYS_SCRIPT, MAIN_CONTENT_SELECTOR) or 0
        except Exception as e:
            self.logger.debug(f"Sticky overlay cleanup failed: {e}")
            return 0
        if hidden:
            self.logger.debug(f"Hid {hidden} sticky/fixed elements before capture")
        return hidden
