"""Built-in phrase dictionary and the deterministic substitution pass."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import regex

from .structures import CompiledMatcher, DictionaryEntry

# Letters, digits and underscore in every script count as word characters.
_BOUNDARY_BEFORE = r"(?<![\p{L}\p{N}_])"
_BOUNDARY_AFTER = r"(?![\p{L}\p{N}_])"

# Multi-word phrases precede the single words they contain.
GITHUB_JA_ENTRIES: Tuple[Tuple[str, str], ...] = (
    ("Create a new pull request", "新しいプルリクエストを作成"),
    ("Compare & pull request", "比較してプルリクエスト"),
    ("Leave a comment", "コメントを残す"),
    ("Add a comment", "コメントを追加"),
    ("Search or jump to...", "検索またはジャンプ..."),
    ("Type / to search", "/ を入力して検索"),
    ("No description, website, or topics provided.", "説明、ウェブサイト、トピックはありません。"),
    ("Go to file", "ファイルへ移動"),
    ("Add file", "ファイルを追加"),
    ("Upload files", "ファイルをアップロード"),
    ("Create new file", "新しいファイルを作成"),
    ("Download ZIP", "ZIP をダウンロード"),
    ("Open with GitHub Desktop", "GitHub Desktop で開く"),
    ("New pull request", "新しいプルリクエスト"),
    ("Merge pull request", "プルリクエストをマージ"),
    ("Pull requests", "プルリクエスト"),
    ("Pull request", "プルリクエスト"),
    ("New issue", "新しい課題"),
    ("Open issues", "オープンな課題"),
    ("Closed issues", "クローズされた課題"),
    ("Recent activity", "最近のアクティビティ"),
    ("Sign in", "サインイン"),
    ("Sign up", "サインアップ"),
    ("Sign out", "サインアウト"),
    ("Your profile", "プロフィール"),
    ("Your repositories", "あなたのリポジトリ"),
    ("Your stars", "スター"),
    ("Your organizations", "あなたの組織"),
    ("Your projects", "あなたのプロジェクト"),
    ("Security and quality", "セキュリティと品質"),
    ("Code review", "コードレビュー"),
    ("Review changes", "変更をレビュー"),
    ("Files changed", "変更されたファイル"),
    ("Squash and merge", "スカッシュしてマージ"),
    ("Rebase and merge", "リベースしてマージ"),
    ("Confirm merge", "マージを確定"),
    ("Delete branch", "ブランチを削除"),
    ("Mark as resolved", "解決済みにする"),
    ("Ready for review", "レビュー可能"),
    ("Request changes", "変更をリクエスト"),
    ("Approve", "承認"),
    ("Latest commit", "最新のコミット"),
    ("View all files", "すべてのファイルを表示"),
    ("Last updated", "最終更新"),
    ("Read more", "続きを読む"),
    ("Load more", "さらに読み込む"),
    ("Show more", "さらに表示"),
    ("Show less", "表示を減らす"),
    ("Learn more", "詳細"),
    ("Issues", "課題"),
    ("Issue", "課題"),
    ("Actions", "アクション"),
    ("Projects", "プロジェクト"),
    ("Security", "セキュリティ"),
    ("Insights", "インサイト"),
    ("Settings", "設定"),
    ("Code", "コード"),
    ("Discussions", "ディスカッション"),
    ("Repositories", "リポジトリ"),
    ("Repository", "リポジトリ"),
    ("Branches", "ブランチ"),
    ("Branch", "ブランチ"),
    ("Tags", "タグ"),
    ("Commits", "コミット"),
    ("Commit", "コミット"),
    ("Releases", "リリース"),
    ("Release", "リリース"),
    ("Packages", "パッケージ"),
    ("Contributors", "コントリビューター"),
    ("Languages", "言語"),
    ("About", "概要"),
    ("License", "ライセンス"),
    ("Stars", "スター"),
    ("Star", "スター"),
    ("Watchers", "ウォッチャー"),
    ("Watch", "ウォッチ"),
    ("Forks", "フォーク"),
    ("Fork", "フォーク"),
    ("Labels", "ラベル"),
    ("Label", "ラベル"),
    ("Milestones", "マイルストーン"),
    ("Milestone", "マイルストーン"),
    ("Assignees", "担当者"),
    ("Assignee", "担当者"),
    ("Reviewers", "レビュアー"),
    ("Notifications", "通知"),
    ("Comments", "コメント"),
    ("Comment", "コメント"),
    ("Conversation", "会話"),
    ("Checks", "チェック"),
    ("Merged", "マージ済み"),
    ("Merge", "マージ"),
    ("Closed", "クローズ"),
    ("Close", "閉じる"),
    ("Open", "オープン"),
    ("Draft", "下書き"),
    ("Edit", "編集"),
    ("Delete", "削除"),
    ("Cancel", "キャンセル"),
    ("Save", "保存"),
    ("Submit", "送信"),
    ("Search", "検索"),
    ("Filters", "フィルター"),
    ("Filter", "フィルター"),
    ("Sort", "並べ替え"),
    ("Newest", "新しい順"),
    ("Oldest", "古い順"),
    ("Author", "作成者"),
    ("Explore", "探索"),
    ("Marketplace", "マーケットプレイス"),
    ("Overview", "概要"),
    ("Followers", "フォロワー"),
    ("Following", "フォロー中"),
    ("Follow", "フォロー"),
    ("Sponsor", "スポンサー"),
    ("Help", "ヘルプ"),
    ("Preview", "プレビュー"),
    ("yesterday", "昨日"),
)

DEFAULT_DICTIONARY: Tuple[DictionaryEntry, ...] = tuple(
    DictionaryEntry(source=source, target=target)
    for source, target in GITHUB_JA_ENTRIES
)


def compile_entries(entries: Iterable[DictionaryEntry]) -> List[CompiledMatcher]:
    """Compile entries into boundary-aware, case-insensitive matchers.

    Input order is kept; it decides which entry wins an overlapping span.
    """

    matchers: List[CompiledMatcher] = []
    for entry in entries:
        escaped = regex.escape(entry.source)
        pattern = regex.compile(
            f"{_BOUNDARY_BEFORE}{escaped}{_BOUNDARY_AFTER}",
            regex.IGNORECASE,
        )
        matchers.append(CompiledMatcher(pattern=pattern, replacement=entry.target))
    return matchers


def _overlaps(spans: Sequence[Tuple[int, int]], start: int, end: int) -> bool:
    for span_start, span_end in spans:
        if start < span_end and span_start < end:
            return True
    return False


class Dictionary:
    """Applies an ordered phrase list to text.

    Matchers are compiled on first use and kept for the lifetime of the
    instance. Each matcher runs left-to-right over the current output, but a
    span produced by an earlier replacement is never rescanned within the
    same pass.
    """

    def __init__(self, entries: Optional[Sequence[DictionaryEntry]] = None) -> None:
        self.entries: Tuple[DictionaryEntry, ...] = tuple(
            DEFAULT_DICTIONARY if entries is None else entries
        )
        self._matchers: Optional[List[CompiledMatcher]] = None

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "Dictionary":
        return cls([DictionaryEntry(source=source, target=target) for source, target in pairs])

    @property
    def matchers(self) -> List[CompiledMatcher]:
        if self._matchers is None:
            self._matchers = compile_entries(self.entries)
        return self._matchers

    def apply(self, text: str) -> str:
        """Return ``text`` with every matcher applied in order."""

        if not text:
            return text

        output = text
        frozen: List[Tuple[int, int]] = []
        for matcher in self.matchers:
            accepted: List[Tuple[int, int]] = []
            for match in matcher.pattern.finditer(output):
                start, end = match.span()
                if _overlaps(frozen, start, end):
                    continue
                accepted.append((start, end))
            if not accepted:
                continue
            output, frozen = self._substitute(output, frozen, accepted, matcher.replacement)
        return output

    @staticmethod
    def _substitute(
        text: str,
        frozen: Sequence[Tuple[int, int]],
        accepted: Sequence[Tuple[int, int]],
        replacement: str,
    ) -> Tuple[str, List[Tuple[int, int]]]:
        parts: List[str] = []
        new_frozen: List[Tuple[int, int]] = []
        cursor = 0
        length = 0
        for start, end in accepted:
            prefix = text[cursor:start]
            parts.append(prefix)
            length += len(prefix)
            parts.append(replacement)
            new_frozen.append((length, length + len(replacement)))
            length += len(replacement)
            cursor = end
        parts.append(text[cursor:])

        # Earlier spans shift by the size change of replacements before them.
        for span_start, span_end in frozen:
            delta = sum(
                len(replacement) - (end - start)
                for start, end in accepted
                if end <= span_start
            )
            new_frozen.append((span_start + delta, span_end + delta))
        return "".join(parts), new_frozen
