"""MemberHub: membership management for associations and clubs."""
