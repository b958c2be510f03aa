# Pages module - one render() per portal page
