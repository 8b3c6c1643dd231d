"""ホットペッパーグルメ店舗検索."""
