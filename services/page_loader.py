"""
Page Loader Service

Uses Selenium with headless Chromium to render JavaScript-heavy pages and
hand their final DOM source to the scraper.
"""

import logging
import time
from typing import Optional
import validators

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException, WebDriverException

from config import config

logger = logging.getLogger(__name__)


class PageFetchResult:
    """Result object for page rendering operations"""

    def __init__(self,
                 url: str,
                 html: str,
                 success: bool = True,
                 error: Optional[str] = None,
                 final_url: Optional[str] = None,
                 load_time: Optional[float] = None):
        self.url = url
        self.html = html
        self.success = success
        self.error = error
        self.final_url = final_url or url
        self.load_time = load_time

    def __repr__(self) -> str:
        status = "SUCCESS" if self.success else "FAILED"
        return f"PageFetchResult({status}, url='{self.url}', size={len(self.html)} chars)"


class WebDriverManager:
    """Manages WebDriver lifecycle and configuration"""

    def __init__(self):
        self.driver: Optional[webdriver.Chrome] = None
        self.options = self._setup_options()

    def _setup_options(self) -> Options:
        """Configure Chrome WebDriver options"""
        options = Options()

        for option in config.selenium_options:
            options.add_argument(option)

        options.add_argument('--disable-logging')
        options.add_argument('--disable-background-timer-throttling')
        options.add_argument('--disable-renderer-backgrounding')

        return options

    def get_driver(self) -> webdriver.Chrome:
        """Get existing driver or create new one"""
        if not self.driver:
            try:
                self.driver = webdriver.Chrome(options=self.options)
                self.driver.implicitly_wait(config.WEBDRIVER_IMPLICITLY_WAIT)
                self.driver.set_page_load_timeout(config.WEBDRIVER_TIMEOUT)
            except Exception as e:
                logger.error(f"Failed to create WebDriver: {e}")
                raise
        return self.driver

    def quit_driver(self):
        """Safely quit the WebDriver"""
        if self.driver:
            try:
                self.driver.quit()
            except Exception as e:
                logger.warning(f"Error quitting driver: {e}")
            finally:
                self.driver = None


class PageLoaderService:
    """Renders pages so that lists built by JavaScript are present in the HTML"""

    def __init__(self):
        self.driver_manager = WebDriverManager()
        self.timeout = config.WEBDRIVER_TIMEOUT

    def fetch_page(self, url: str, wait_for_element: Optional[str] = None) -> PageFetchResult:
        """
        Render a URL and return its DOM source

        Args:
            url: URL to render
            wait_for_element: CSS selector to wait for before reading the DOM

        Returns:
            PageFetchResult with the rendered HTML
        """
        if not validators.url(url):
            return PageFetchResult(url=url, html="", success=False, error="Invalid URL format")

        logger.info(f"Rendering page: {url}")
        start_time = time.time()

        try:
            driver = self.driver_manager.get_driver()
            driver.get(url)

            if wait_for_element:
                try:
                    WebDriverWait(driver, self.timeout).until(
                        EC.presence_of_element_located((By.CSS_SELECTOR, wait_for_element))
                    )
                except TimeoutException:
                    logger.warning(f"Timeout waiting for element: {wait_for_element}")

            # Let client-side rendering settle
            time.sleep(config.WEBDRIVER_SETTLE_TIME)

            html = driver.page_source
            load_time = time.time() - start_time
            logger.info(f"Rendered {len(html)} characters in {load_time:.2f}s")

            return PageFetchResult(url=url, html=html, final_url=driver.current_url,
                                   load_time=load_time)

        except TimeoutException as e:
            error_msg = f"Page load timeout after {self.timeout}s"
            logger.error(f"{error_msg}: {e}")
            return PageFetchResult(url=url, html="", success=False, error=error_msg)

        except WebDriverException as e:
            error_msg = f"WebDriver error: {str(e)}"
            logger.error(error_msg)
            return PageFetchResult(url=url, html="", success=False, error=error_msg)

    def cleanup(self):
        """Clean up WebDriver resources"""
        self.driver_manager.quit_driver()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
