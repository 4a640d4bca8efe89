# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Playwright implementation of the browser driver.

Every tool maps to a handful of Playwright calls on a single page. Results
are plain JSON-serializable dicts so they can be handed to the model as a
tool result verbatim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict

from careerscout.agents.tools.schemas import (
    ClickInput,
    DoneInput,
    ExtractJobDetailInput,
    ExtractJobsInput,
    InputTextInput,
    NavigateInput,
    ScrollInput,
    ToolInput,
    ToolName,
    WaitInput,
    parse_tool_input,
)
from careerscout.agents.types import ToolResult
from careerscout.exceptions import ToolInputError
from careerscout.utils.logger import logger

if TYPE_CHECKING:
    from playwright.async_api import Page

NAVIGATION_TIMEOUT_MS = 60000
SELECTOR_TIMEOUT_MS = 5000
NAVIGATION_SETTLE_MS = 2000
CLICK_SETTLE_MS = 1500
SCROLL_SETTLE_MS = 1000
INPUT_SETTLE_MS = 500
DESCRIPTION_LIMIT = 2000

_SCROLL_POSITION_JS = """
() => ({
    y: window.scrollY,
    maxY: document.documentElement.scrollHeight - window.innerHeight
})
"""

_PAGE_INFO_JS = r"""
() => {
    const selectorFor = (el, fallback) => {
        if (el.id) return `#${el.id}`;
        if (el.className && typeof el.className === 'string') {
            const classes = el.className.split(' ').filter(c => c).slice(0, 2).join('.');
            if (classes) return `.${classes}`;
        }
        return fallback || el.tagName.toLowerCase();
    };

    const selector_candidates = [];
    const patterns = [
        '[class*="job"]', '[class*="career"]', '[class*="position"]',
        '[class*="opening"]', '[class*="listing"]', '[class*="vacancy"]',
        '[class*="card"]', '[class*="item"]', '[class*="result"]',
        'li', 'article', '[role="listitem"]'
    ];
    for (const pattern of patterns) {
        const elements = document.querySelectorAll(pattern);
        if (elements.length > 0 && elements.length < 500) {
            const sample = (elements[0].textContent || '').trim().substring(0, 100);
            if (sample.length > 10) {
                selector_candidates.push({selector: pattern, count: elements.length, sample});
            }
        }
    }

    const titleWords = /engineer|manager|designer|analyst|developer|architect|scientist|lead|director|specialist/i;
    const job_links = Array.from(document.querySelectorAll('a'))
        .filter(a => {
            const text = (a.textContent || '').trim();
            const href = a.href || '';
            return titleWords.test(text) || href.includes('job') ||
                href.includes('career') || href.includes('position');
        })
        .slice(0, 15)
        .map(a => ({
            text: (a.textContent || '').trim().substring(0, 80),
            href: a.href,
            parent_class: (a.parentElement && a.parentElement.className) || ''
        }));

    const visible_buttons = Array.from(
        document.querySelectorAll('button, [role="button"], a.btn, .button, [class*="btn"]')
    )
        .filter(el => {
            const text = (el.textContent || '').trim();
            return text && text.length < 50 && window.getComputedStyle(el).display !== 'none';
        })
        .slice(0, 15)
        .map(el => ({
            text: (el.textContent || '').trim(),
            selector: selectorFor(el),
            tag_name: el.tagName
        }));

    const paginationEl = document.querySelector(
        '[class*="pagination"], [class*="pager"], [class*="page-nav"], [class*="page-number"]'
    );
    const pagination_info = paginationEl
        ? ((paginationEl.textContent || '').trim().substring(0, 100) || null)
        : null;

    const filter_info = Array.from(
        document.querySelectorAll('[class*="filter"], select, [class*="dropdown"], [class*="select"]')
    )
        .slice(0, 5)
        .map(el => ({
            text: (el.textContent || '').trim().substring(0, 50),
            tag_name: el.tagName,
            class_name: typeof el.className === 'string' ? el.className : ''
        }));

    const has_modal = !!(
        document.querySelector('[class*="modal"]:not([style*="display: none"])') ||
        document.querySelector('[role="dialog"]')
    );

    const resultMatch = (document.body.innerText || '')
        .match(/(\d+)\s*(results?|jobs?|positions?|openings?)/i);
    const result_count = resultMatch ? resultMatch[0] : null;

    const pagination_type = {type: 'unknown'};

    const loadMorePatterns = [
        '[class*="load-more"]', '[class*="loadmore"]', '[class*="show-more"]', '[class*="view-more"]'
    ];
    for (const pattern of loadMorePatterns) {
        if (document.querySelector(pattern)) {
            pagination_type.type = 'load-more';
            pagination_type.load_more_selector = pattern;
            break;
        }
    }
    if (pagination_type.type === 'unknown') {
        const loadMoreBtn = Array.from(document.querySelectorAll('button, a.btn, [role="button"]'))
            .find(btn => {
                const text = (btn.textContent || '').trim().toLowerCase();
                return text.includes('load more') || text.includes('더 보기') ||
                    text.includes('view more') || text.includes('show more') || text === 'more';
            });
        if (loadMoreBtn) {
            pagination_type.type = 'load-more';
            pagination_type.load_more_selector = selectorFor(loadMoreBtn);
        }
    }

    const nextWords = ['next', '다음', '>', '›', '>>', '»'];
    const isDisabled = el => el.hasAttribute('disabled') || el.classList.contains('disabled');
    if (pagination_type.type === 'unknown') {
        const nextPatterns = [
            '[class*="next"]', '[aria-label*="next"]', '[aria-label*="Next"]',
            '[class*="pagination"] a:last-child', '[class*="pager"] a:last-child'
        ];
        for (const pattern of nextPatterns) {
            const el = document.querySelector(pattern);
            if (!el || isDisabled(el)) continue;
            const text = (el.textContent || '').trim().toLowerCase();
            if (text.includes('next') || text.includes('다음') || text === '>' || text === '›') {
                pagination_type.type = 'button';
                pagination_type.next_selector = pattern;
                break;
            }
        }
    }
    if (pagination_type.type === 'unknown') {
        const nextBtn = Array.from(document.querySelectorAll('a, button'))
            .find(el => !isDisabled(el) &&
                nextWords.includes((el.textContent || '').trim().toLowerCase()));
        if (nextBtn) {
            pagination_type.type = 'button';
            pagination_type.next_selector = selectorFor(nextBtn, 'a');
        }
    }

    if (pagination_type.type === 'unknown') {
        const params = new URLSearchParams(window.location.search);
        for (const param of ['page', 'p', 'pg', 'offset', 'start', 'from']) {
            const value = params.get(param);
            if (value !== null) {
                pagination_type.type = 'url-param';
                pagination_type.current_page = parseInt(value, 10) || 0;
                pagination_type.url_pattern = `${param}=${value}`;
                break;
            }
        }
    }

    if (pagination_type.type === 'unknown' && paginationEl) {
        const numbered = Array.from(paginationEl.querySelectorAll('a, button'))
            .some(el => /^\d+$/.test((el.textContent || '').trim()));
        if (numbered) pagination_type.type = 'button';
    }

    if (pagination_type.type === 'unknown' &&
        document.documentElement.scrollHeight > window.innerHeight * 2) {
        pagination_type.type = 'infinite-scroll';
    }
    if (pagination_type.type === 'unknown') {
        pagination_type.type = 'none';
    }

    return {
        url: window.location.href,
        title: document.title,
        selector_candidates,
        job_links,
        visible_buttons,
        pagination_info,
        pagination_type,
        filter_info,
        has_modal,
        result_count
    };
}
"""

_EXTRACT_JOBS_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map(card => {
    const text = el => (el && el.textContent ? el.textContent.trim() : null);
    const titleEl = card.querySelector('h1, h2, h3, h4, [class*="title"], a') ||
        card.querySelector('strong, b');
    const link = card.querySelector('a[href]');
    return {
        title: text(titleEl) || '',
        location: text(card.querySelector('[class*="location"], [class*="place"]')),
        department: text(card.querySelector(
            '[class*="department"], [class*="team"], [class*="category"]'
        )),
        detail_url: link ? link.href : null
    };
})
"""

_EXTRACT_JOB_DETAIL_JS = """
([selector, limit]) => {
    const container = document.querySelector(selector) || document.body;
    const text = container.innerText || container.textContent || '';
    const titleEl = container.querySelector('h1, h2, [class*="title"]');
    const locationMatch = text.match(/location[:\\s]+([^\\n]+)/i);
    return {
        title: titleEl && titleEl.textContent ? titleEl.textContent.trim() : '',
        location: locationMatch ? locationMatch[1].trim() : null,
        description: text.substring(0, limit)
    };
}
"""


class PlaywrightToolExecutor:
    """
    Browser driver backed by one Playwright page.

    ``execute`` validates the raw tool input, dispatches to the matching
    handler and converts every failure into an error ToolResult.

    Example:
        >>> executor = PlaywrightToolExecutor(page)
        >>> result = await executor.execute("scroll", {"direction": "down"})
        >>> result.data["at_bottom"]
        False
    """

    def __init__(self, page: Page) -> None:
        self.page = page
        self._handlers: Dict[ToolName, Callable[[Any], Awaitable[ToolResult]]] = {
            ToolName.NAVIGATE: self._navigate,
            ToolName.CLICK: self._click,
            ToolName.SCROLL: self._scroll,
            ToolName.INPUT_TEXT: self._input_text,
            ToolName.WAIT: self._wait,
            ToolName.GET_PAGE_INFO: self._get_page_info,
            ToolName.EXTRACT_JOBS: self._extract_jobs,
            ToolName.EXTRACT_JOB_DETAIL: self._extract_job_detail,
            ToolName.DONE: self._done,
        }

    @property
    def current_url(self) -> str:
        return self.page.url

    async def execute(self, tool_name: str, tool_input: Any) -> ToolResult:
        try:
            params: ToolInput = parse_tool_input(tool_name, tool_input)
        except ToolInputError as e:
            return ToolResult.error_result(e.message)

        handler = self._handlers[ToolName(tool_name)]
        try:
            return await handler(params)
        except Exception as e:
            logger.debug(f"Tool {tool_name} raised: {e}")
            return ToolResult.error_result(str(e) or type(e).__name__)

    async def _navigate(self, params: NavigateInput) -> ToolResult:
        try:
            await self.page.goto(params.url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            await self.page.wait_for_timeout(NAVIGATION_SETTLE_MS)
        except Exception as e:
            logger.debug(f"Navigation to {params.url} failed: {e}")
            return ToolResult.error_result(f"Failed to navigate: {params.url}")
        return ToolResult.success_result(
            {"message": f"Navigated to {params.url}", "current_url": self.page.url}
        )

    async def _click(self, params: ClickInput) -> ToolResult:
        try:
            await self.page.wait_for_selector(
                params.selector, timeout=SELECTOR_TIMEOUT_MS, state="visible"
            )
            await self.page.click(params.selector)
            await self.page.wait_for_timeout(CLICK_SETTLE_MS)
        except Exception as e:
            logger.debug(f"Click on {params.selector} failed: {e}")
            return ToolResult.error_result(f"Element not found or not clickable: {params.selector}")
        return ToolResult.success_result({"message": f"Clicked {params.selector}"})

    async def _scroll(self, params: ScrollInput) -> ToolResult:
        pixels = params.amount if params.direction == "down" else -params.amount
        await self.page.evaluate("(pixels) => window.scrollBy(0, pixels)", pixels)
        await self.page.wait_for_timeout(SCROLL_SETTLE_MS)

        position = await self.page.evaluate(_SCROLL_POSITION_JS)
        y, max_y = position["y"], position["maxY"]
        return ToolResult.success_result(
            {
                "message": f"Scrolled {params.direction} by {params.amount}px",
                "current_position": y,
                "max_position": max_y,
                "at_bottom": y >= max_y - 10,
            }
        )

    async def _input_text(self, params: InputTextInput) -> ToolResult:
        try:
            await self.page.wait_for_selector(params.selector, timeout=SELECTOR_TIMEOUT_MS)
            await self.page.fill(params.selector, params.text)
            await self.page.wait_for_timeout(INPUT_SETTLE_MS)
        except Exception as e:
            logger.debug(f"Input into {params.selector} failed: {e}")
            return ToolResult.error_result(f"Input field not found: {params.selector}")
        return ToolResult.success_result(
            {"message": f'Typed "{params.text}" into {params.selector}'}
        )

    async def _wait(self, params: WaitInput) -> ToolResult:
        await self.page.wait_for_timeout(params.ms)
        return ToolResult.success_result({"message": f"Waited {params.ms}ms"})

    async def _get_page_info(self, params: ToolInput) -> ToolResult:
        return ToolResult.success_result(await self.page.evaluate(_PAGE_INFO_JS))

    async def _extract_jobs(self, params: ExtractJobsInput) -> ToolResult:
        cards = await self.page.evaluate(_EXTRACT_JOBS_JS, params.job_card_selector)
        jobs = [
            {key: value for key, value in card.items() if value is not None}
            for card in cards
            if card.get("title")
        ]
        return ToolResult.success_result({"count": len(jobs), "jobs": jobs})

    async def _extract_job_detail(self, params: ExtractJobDetailInput) -> ToolResult:
        detail = await self.page.evaluate(
            _EXTRACT_JOB_DETAIL_JS, [params.container_selector, DESCRIPTION_LIMIT]
        )
        return ToolResult.success_result(detail)

    async def _done(self, params: DoneInput) -> ToolResult:
        return ToolResult.success_result({"completed": True, "reason": params.reason})
