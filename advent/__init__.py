"""Advent Calendar - 24日分のドアにメッセージや画像を詰めて贈るアプリのバックエンド"""
