from __future__ import annotations

from unittest.mock import Mock

import pytest

from yt_mcp.yt_auth import AuthMode, YouTubeContext
from yt_mcp.yt_gateway import YouTubeGateway


@pytest.fixture
def mock_service():
    """A Mock standing in for a youtube/v3 discovery client."""
    return Mock(name="youtube")


@pytest.fixture
def api_key_gateway(mock_service):
    return YouTubeGateway(YouTubeContext(service=mock_service, mode=AuthMode.api_key))


@pytest.fixture
def oauth_gateway(mock_service):
    return YouTubeGateway(YouTubeContext(service=mock_service, mode=AuthMode.oauth2))


@pytest.fixture
def sample_video_search_response():
    return {
        "items": [
            {
                "kind": "youtube#searchResult",
                "id": {"kind": "youtube#video", "videoId": "vid00000001"},
                "snippet": {
                    "title": "Go Tutorial for Beginners",
                    "description": "Learn Go",
                    "channelId": "UCaaaaaaaaaaaaaaaaaaaaaa",
                    "channelTitle": "Gopher Academy",
                    "publishedAt": "2024-01-15T10:30:00Z",
                    "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/vid00000001/mqdefault.jpg"}},
                },
            },
            {
                "kind": "youtube#searchResult",
                "id": {"kind": "youtube#video", "videoId": "vid00000002"},
                "snippet": {
                    "title": "Concurrency in Go",
                    "channelId": "UCbbbbbbbbbbbbbbbbbbbbbb",
                    "publishedAt": "2024-01-10T08:15:00Z",
                    "thumbnails": {"default": {"url": "https://i.ytimg.com/vi/vid00000002/default.jpg"}},
                },
            },
        ]
    }


@pytest.fixture
def sample_video_resource():
    return {
        "kind": "youtube#video",
        "id": "dQw4w9WgXcQ",
        "snippet": {
            "title": "Never Gonna Give You Up",
            "description": "Official video",
            "channelId": "UCuAXFkgsw1L7xaCfnd5JJOw",
            "channelTitle": "Rick Astley",
            "publishedAt": "2009-10-25T06:57:33Z",
            "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/mqdefault.jpg"}},
            "tags": ["rick astley", "never gonna give you up"],
            "categoryId": "10",
        },
        "contentDetails": {"duration": "PT3M33S"},
        "statistics": {"viewCount": "1500000000", "likeCount": "17000000", "commentCount": "2300000"},
    }


@pytest.fixture
def sample_channel_resource():
    return {
        "kind": "youtube#channel",
        "id": "UCBUKHRdFNRo2gPXRXCKnN7w",
        "snippet": {
            "title": "Example Channel",
            "description": "About us",
            "customUrl": "@example",
            "publishedAt": "2012-03-01T00:00:00Z",
            "country": "US",
            "thumbnails": {"medium": {"url": "https://yt3.ggpht.com/example=s240"}},
        },
        "statistics": {"subscriberCount": "1200", "videoCount": "42", "viewCount": "98765"},
        "contentDetails": {"relatedPlaylists": {"uploads": "UUBUKHRdFNRo2gPXRXCKnN7w"}},
    }
